import sys
import time
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .errors import FileExchangeError, Unauthorized
from .routes.auth import router as auth_router
from .routes.dependencies import require_identity
from .routes.files import router as files_router
from .services.auth_service import AuthService
from .services.naming import FilenameGenerator
from .services.storage import StorageDirectory
from .services.upload_service import UploadService
from .utils.logging import logger


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the service with every collaborator wired from ``settings``."""
    if settings is None:
        settings = Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.log_step("starting_image_exchange_service", {
            "host": settings.APP_HOST,
            "port": settings.APP_PORT,
            "debug": settings.DEBUG,
            "auth_enabled": settings.AUTH_ENABLED,
            "python_version": sys.version,
            "storage_root": str(app.state.storage.root)
        })

        yield

        logger.log_step("image_exchange_service_shutdown")

    app = FastAPI(
        title=settings.SERVICE_NAME,
        description="Image upload, listing and download service.",
        version=settings.SERVICE_VERSION,
        lifespan=lifespan
    )

    storage = StorageDirectory(settings.storage_root_path)
    app.state.settings = settings
    app.state.storage = storage
    app.state.upload_service = UploadService(
        storage,
        FilenameGenerator(),
        settings.ALLOWED_EXTENSIONS,
        settings.MAX_UPLOAD_SIZE_BYTES,
    )
    app.state.auth_service = None
    if settings.AUTH_ENABLED:
        app.state.auth_service = AuthService(
            settings.AUTH_USERNAME,
            settings.AUTH_PASSWORD,
            settings.AUTH_SECRET_KEY,
            timedelta(hours=settings.AUTH_TOKEN_TTL_HOURS),
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        logger.log_step("request_completed", {
            "method": request.method,
            "url": str(request.url),
            "status_code": response.status_code,
            "process_time": process_time
        })

        return response

    @app.exception_handler(FileExchangeError)
    async def file_exchange_exception_handler(request: Request, exc: FileExchangeError):
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message},
            headers=headers
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.log_error("unhandled_exception", {
            "method": request.method,
            "url": str(request.url),
            "error": str(exc)
        })

        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"}
        )

    gate = [Depends(require_identity)] if settings.AUTH_ENABLED else []
    app.include_router(auth_router)
    app.include_router(files_router, dependencies=gate)

    @app.get("/")
    async def root():
        return {
            "message": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "auth_enabled": settings.AUTH_ENABLED,
            "endpoints": {
                "health": "/health",
                "login": "/login",
                "upload": "/upload",
                "files": "/files",
                "download": "/download/{filename}",
                "docs": "/docs"
            }
        }

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "storage": "ready" if storage.is_available() else "unavailable"
        }

    return app
