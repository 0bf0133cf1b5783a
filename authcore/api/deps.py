"""Dependencies resolving the process-wide components stored on app.state."""

from fastapi import Request

from authcore.core.config import Settings
from authcore.core.database import StoreConnection
from authcore.core.security import TokenCodec
from authcore.services.credentials import CredentialManager


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store_connection(request: Request) -> StoreConnection:
    return request.app.state.store_connection


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_credential_manager(request: Request) -> CredentialManager:
    return request.app.state.credential_manager
