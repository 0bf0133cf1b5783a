"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from authcore.api import router
from authcore.core.config import DEFAULT_JWT_SECRET, Settings, get_settings
from authcore.core.database import StoreConnection
from authcore.core.errors import InternalError, ServiceError, ValidationFailed
from authcore.core.security import PasswordHasher, TokenCodec
from authcore.schemas.auth import ErrorResponse
from authcore.services.accounts import AccountStore
from authcore.services.credentials import CredentialManager

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def _error_body(exc: ServiceError, include_details: bool = True) -> dict[str, Any]:
    body = ErrorResponse(
        message=exc.message,
        details=exc.details if include_details else None,
        field=exc.field,
    )
    return body.model_dump(exclude_none=True)


def _loop_exception_handler(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    """Log failures of background tasks nobody awaited. The process keeps running."""
    exc = context.get("exception")
    logger.error(
        "Unhandled asynchronous failure: %s",
        context.get("message", "unknown"),
        exc_info=exc,
    )


def register_exception_handlers(app: FastAPI, app_settings: Settings) -> None:
    """Render every failure as {error, message, details?, field?}."""

    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        if isinstance(exc, InternalError):
            logger.error(
                "%s on %s %s", exc.message, request.method, request.url.path,
                exc_info=exc.__cause__ or exc,
            )
            body = _error_body(exc, include_details=False)
            if app_settings.is_dev and exc.__cause__ is not None:
                body["details"] = {"exception": str(exc.__cause__)}
            return JSONResponse(status_code=exc.status_code, content=body)
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details: dict[str, str] = {}
        for err in exc.errors():
            loc = [str(part) for part in err.get("loc", ()) if part != "body"]
            details[".".join(loc) or "body"] = err.get("msg", "Invalid value")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body(ValidationFailed(details=details)),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled error on %s %s", request.method, request.url.path
        )
        body = _error_body(InternalError())
        if app_settings.is_dev:
            body["details"] = {"exception": str(exc)}
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body
        )


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the app and its process-wide components from settings."""
    app_settings = app_settings or get_settings()
    if app_settings.DEBUG:
        logging.getLogger().setLevel(logging.DEBUG)

    store_connection = StoreConnection.from_settings(app_settings)
    hasher = PasswordHasher(
        rounds=app_settings.BCRYPT_ROUNDS, workers=app_settings.HASH_WORKERS
    )
    token_codec = TokenCodec.from_settings(app_settings)
    credential_manager = CredentialManager(
        AccountStore(store_connection), hasher, token_codec
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncGenerator[None, None]:
        """Start the store retry loop; on shutdown close the store and hash pool."""
        # Unawaited task failures are logged only; no graceful shutdown follows.
        asyncio.get_running_loop().set_exception_handler(_loop_exception_handler)
        if (
            not app_settings.is_dev
            and app_settings.JWT_SECRET.get_secret_value() == DEFAULT_JWT_SECRET
        ):
            logger.warning("JWT_SECRET is the development default; set it in production")
        logger.info("%s starting on port %s", app_settings.SERVICE_NAME, app_settings.PORT)
        store_connection.start()
        yield
        logger.info("%s shutting down", app_settings.SERVICE_NAME)
        await store_connection.close()
        hasher.shutdown()

    app = FastAPI(
        title="Auth Service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.store_connection = store_connection
    app.state.token_codec = token_codec
    app.state.credential_manager = credential_manager

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ALLOW_ORIGINS if app_settings.is_dev else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app, app_settings)
    app.include_router(router)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": app_settings.SERVICE_NAME}

    return app


app = create_app()
