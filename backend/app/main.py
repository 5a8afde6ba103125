from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import router as api_router
from app.api.sync_routes import router as sync_router
from app.auth.token_auth import AuthService
from app.core.config import Settings
from app.core.exceptions import (
    AccountExistsError,
    AccountNotFoundError,
    InvalidCredentialsError,
    InvalidInputError,
    SakuraError,
    StorageError,
    UnauthorizedError,
)
from app.core.logging import get_logger, setup_logging
from app.repositories.factory import build_account_repository
from app.services.sync_service import SyncService

logger = get_logger("sakura.main")

# Checked in order; the first matching class wins.
ERROR_STATUS: list[tuple[type[SakuraError], int]] = [
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (AccountExistsError, status.HTTP_400_BAD_REQUEST),
    (InvalidCredentialsError, status.HTTP_400_BAD_REQUEST),
    (UnauthorizedError, status.HTTP_401_UNAUTHORIZED),
    (AccountNotFoundError, status.HTTP_404_NOT_FOUND),
]

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SakuraError)
    async def handle_sakura_error(request: Request, exc: SakuraError) -> JSONResponse:
        for error_type, status_code in ERROR_STATUS:
            if isinstance(exc, error_type):
                headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
                return JSONResponse(
                    status_code=status_code,
                    content={"detail": exc.message},
                    headers=headers,
                )

        if isinstance(exc, StorageError):
            logger.error(f"Storage failure on {request.url.path}: {exc.message} {exc.details}", exc_info=exc)
        else:
            logger.error(f"Unhandled error on {request.url.path}: {exc.message}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Server error"},
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid request body"},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unexpected error on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Server error"},
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API with its services wired to ``settings``."""
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    if settings.uses_default_secret and settings.environment == "production":
        logger.warning("JWT_SECRET is not set; tokens are signed with the default secret")

    repository = build_account_repository(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Storage must be usable before serving; a failure here stops start-up.
        repository.ensure_ready()
        logger.info(f"Sakura backend ready (storage={settings.storage_backend}, env={settings.environment})")
        yield

    app = FastAPI(title="Sakura Sync API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.repository = repository
    app.state.auth_service = AuthService(repository, settings)
    app.state.sync_service = SyncService(repository)

    @app.middleware("http")
    async def limit_body_and_secure_headers(request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > settings.max_body_bytes:
            response = JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={"detail": "Request body too large"},
            )
        else:
            response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)
    app.include_router(api_router)
    app.include_router(sync_router)
    return app


# Load environment variables from .env file in project root
# backend/app/main.py -> backend -> project root
env_path = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(env_path)

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=app.state.settings.host, port=app.state.settings.port)
