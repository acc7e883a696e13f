"""FastAPI application for CryoNexus."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cryonexus.api.routers import analyze, country_data
from cryonexus.api.schemas.response import HealthResponse
from cryonexus.api.services.analysis_service import AnalysisService
from cryonexus.config import DEFAULT_ALLOWED_ORIGINS, Settings, get_settings
from cryonexus.logger import get_logger
from cryonexus.services.country_data import CountryDataStore
from cryonexus.services.replay import RecordingLibrary

logger = get_logger(__name__)

VERSION = "1.0.0"


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    # Messages raised by our own validators are carried in ctx
    original = (first.get("ctx") or {}).get("error")
    if original is not None:
        return str(original)
    if first.get("type") == "json_invalid":
        return "Request body must be valid JSON"
    return str(first.get("msg", "Invalid request"))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = _validation_message(exc)
    logger.warning(f"Rejected request to {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"error": message})


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API application.

    Settings are resolved at startup when not given, so importing this
    module never requires credentials.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resolved = settings or get_settings()
        logger.info("Starting CryoNexus API server")
        app.state.settings = resolved
        app.state.analysis_service = AnalysisService(resolved)
        app.state.country_store = CountryDataStore(resolved.country_data_path)
        app.state.recordings = (
            RecordingLibrary(resolved.recordings_dir) if resolved.use_recordings else None
        )
        logger.info("API documentation available at /docs")
        try:
            yield
        finally:
            logger.info("Shutting down CryoNexus API server")
            await app.state.analysis_service.close()

    app = FastAPI(
        title="CryoNexus API",
        description="Multi-agent catastrophic scenario analysis with streamed results",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins if settings else DEFAULT_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(analyze.router, prefix="/api", tags=["analysis"])
    app.include_router(country_data.router, prefix="/api", tags=["reference"])

    @app.get("/", response_model=HealthResponse)
    async def root():
        """Root endpoint with basic API information."""
        return HealthResponse(status="running", version=VERSION)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        """Health check endpoint."""
        return HealthResponse(status="healthy", version=VERSION)

    return app


app = create_app()
