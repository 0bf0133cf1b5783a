"""Register, login and profile routes plus the token-checking dependency."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from authcore.api.deps import (
    get_app_settings,
    get_credential_manager,
    get_token_codec,
)
from authcore.core.config import Settings
from authcore.core.errors import (
    AuthExpired,
    AuthInvalid,
    AuthMissing,
    TokenExpired,
    TokenInvalid,
)
from authcore.core.security import TokenCodec
from authcore.schemas.auth import (
    AccountProfile,
    AuthResponse,
    ErrorResponse,
    Identity,
    LoginRequest,
    ProfileResponse,
    PublicAccount,
    RegisterRequest,
)
from authcore.services.credentials import CredentialManager

logger = logging.getLogger(__name__)

router = APIRouter()


def _error_responses(*codes: int) -> dict[int | str, dict]:
    return {code: {"model": ErrorResponse} for code in codes}


def require_identity(
    request: Request,
    app_settings: Annotated[Settings, Depends(get_app_settings)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
) -> Identity:
    """
    Dependency: require a valid token in the auth header and return its identity.

    The header name comes from the app's AUTH_HEADER_NAME. Decided from the
    token alone (signature and expiry); the account store is not consulted.
    Raises AuthMissing, AuthExpired or AuthInvalid (all 401).
    """
    token = request.headers.get(app_settings.AUTH_HEADER_NAME)
    if token is None or not token.strip():
        raise AuthMissing()
    try:
        claims = codec.verify(token.strip())
    except TokenExpired:
        logger.info("Rejected expired token on %s", request.url.path)
        raise AuthExpired() from None
    except TokenInvalid as e:
        logger.info("Rejected invalid token on %s: %s", request.url.path, e)
        raise AuthInvalid() from None
    identity = Identity(subject_id=claims.subject_id, role=claims.role)
    request.state.identity = identity
    return identity


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_error_responses(400, 409, 500),
)
async def register(
    body: RegisterRequest,
    manager: Annotated[CredentialManager, Depends(get_credential_manager)],
) -> AuthResponse:
    """Create an account and return a token for it."""
    result = await manager.register(body)
    return AuthResponse(
        message="User registered successfully",
        token=result.token,
        user=PublicAccount.model_validate(result.account),
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses=_error_responses(400, 401, 500),
)
async def login(
    body: LoginRequest,
    manager: Annotated[CredentialManager, Depends(get_credential_manager)],
) -> AuthResponse:
    """
    Authenticate with email and password; returns a signed token.
    Send the token on later requests in the auth header (default: x-auth-token).
    """
    result = await manager.login(body)
    return AuthResponse(
        message="Login successful",
        token=result.token,
        user=PublicAccount.model_validate(result.account),
    )


@router.get(
    "/profile",
    response_model=ProfileResponse,
    responses=_error_responses(401, 404, 500),
)
async def profile(
    identity: Annotated[Identity, Depends(require_identity)],
    manager: Annotated[CredentialManager, Depends(get_credential_manager)],
) -> ProfileResponse:
    """Return the account the presented token was issued for (no password)."""
    account = await manager.profile(identity.subject_id)
    return ProfileResponse(user=AccountProfile.from_account(account))
