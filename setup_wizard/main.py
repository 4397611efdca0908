import logging
import os
import warnings
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from .body_limit import BodySizeLimitMiddleware
from .config import SERVICE_NAME, Settings, get_settings
from .email_service import MailTransport, create_transport
from .exceptions import ConfigurationWarning, SubmissionError
from .rate_limiter import create_rate_limiter
from .routes import wizard_router
from .schemas import HealthResponse
from .security_headers import SecurityHeadersMiddleware
from .services.submission_service import SubmissionService

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


def report_configuration(settings: Settings) -> None:
    """Warn about missing mail settings without stopping the server"""
    for problem in settings.configuration_warnings():
        logger.warning(f"WARNING: {problem}")
        warnings.warn(problem, ConfigurationWarning, stacklevel=2)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info(f"Claude Code Setup Wizard server running on port {settings.port}")
    logger.info(f"Environment: {settings.environment}")
    report_configuration(settings)
    yield
    logger.info("Shutdown signal received: closing HTTP server")


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[MailTransport] = None,
) -> FastAPI:
    """
    Build the wizard API.

    Args:
        settings: Configuration; read from the environment when omitted
        transport: Mail transport; built from ``settings`` when omitted
    """
    settings = settings or get_settings()
    transport = transport or create_transport(settings)

    app = FastAPI(title="Claude Code Setup Wizard", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.submission_service = SubmissionService(settings, transport)

    @app.exception_handler(SubmissionError)
    async def submission_error_handler(request: Request, exc: SubmissionError):
        return JSONResponse(
            status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers()
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed JSON or a non-object body gets the wizard's 400 shape instead of a 422"""
        logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid request body",
                "message": "Request body must be a JSON object",
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"{request.method} {request.url.path} - Error: {str(exc)}")
        return JSONResponse(status_code=500, content=SubmissionError().to_dict())

    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)

    if settings.security_headers_enabled:
        app.add_middleware(
            SecurityHeadersMiddleware,
            exclude_paths=["/health"],
            is_production=settings.is_production,
        )
        logger.info("Security headers enabled")
    else:
        logger.warning("Security headers DISABLED - only use in development!")

    # CORS Configuration
    logger.info(f"CORS allowed origins: {settings.allowed_origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    rate_limit_submissions = create_rate_limiter(
        limit=settings.rate_limit_max,
        window_seconds=settings.rate_limit_window_seconds,
        key_prefix="submit_wizard",
        redis_url=settings.redis_url,
        trust_proxy=settings.trust_proxy,
    )
    app.include_router(wizard_router, dependencies=[Depends(rate_limit_submissions)])

    static_dir = Path(settings.static_dir)

    @app.get("/", include_in_schema=False)
    def index():
        """Serve the wizard front-end"""
        page = static_dir / "index.html"
        if not page.is_file():
            return JSONResponse(
                status_code=404,
                content={"error": "Not found", "message": "Wizard page is not installed"},
            )
        return FileResponse(page)

    @app.get("/health", response_model=HealthResponse)
    def health():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "service": SERVICE_NAME,
        }

    if static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

    return app


app = create_app()
