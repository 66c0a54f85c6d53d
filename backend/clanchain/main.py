"""
FastAPI application
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from clanchain import __version__
from clanchain.api.routes import (auth, clans, disputes, functions, health,
                                  rites, vaults)
from clanchain.core.config import get_settings
from clanchain.core.exceptions import ClanChainError
from clanchain.core.logging_config import LoggingConfig
from clanchain.core.middleware import LoggingContextMiddleware
from clanchain.core.middleware_metrics import MetricsMiddleware

# Configure logging first
LoggingConfig.configure()

logger = LoggingConfig.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for FastAPI app"""
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode...")
    yield
    logger.info(f"Shutting down {settings.app_name}...")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def clanchain_error_handler(request: Request, exc: ClanChainError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.message}", extra={"path": request.url.path})
    else:
        logger.info(
            f"Request rejected: {exc.message}",
            extra={"status_code": exc.status_code, "error_type": type(exc).__name__},
        )
    return _error(exc.status_code, exc.message)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return _error(400, errors or "Invalid request")


async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to log all unhandled errors"""
    logger.error(
        "Unhandled exception",
        exc_info=exc,
        extra={
            "error": str(exc),
            "error_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        }
    )
    return _error(500, str(exc) or type(exc).__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        description="Clan governance backend: disputes, vaults, rites and platform administration",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(LoggingContextMiddleware)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ClanChainError, clanchain_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(functions.router)
    app.include_router(clans.router)
    app.include_router(disputes.router)
    app.include_router(vaults.router)
    app.include_router(rites.router)

    @app.get("/api")
    async def root():
        """Root API endpoint"""
        return {
            "name": settings.app_name,
            "version": __version__,
            "status": "running",
            "environment": settings.app_env,
        }

    return app


app = create_app()
