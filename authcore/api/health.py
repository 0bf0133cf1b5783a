"""Health check endpoint reporting account store connectivity."""

from typing import Annotated

from fastapi import APIRouter, Depends

from authcore.api.deps import get_app_settings, get_store_connection
from authcore.core.config import Settings
from authcore.core.database import StoreConnection
from authcore.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(
    app_settings: Annotated[Settings, Depends(get_app_settings)],
    connection: Annotated[StoreConnection, Depends(get_store_connection)],
) -> HealthResponse:
    """
    Return service status and whether the account store is connected.
    Reads the connection state only; never blocks on the store. Used by the gateway.
    """
    return HealthResponse(
        service=app_settings.SERVICE_NAME,
        storeConnected=connection.is_connected,
    )
