"""
InterviewAce - Main FastAPI Application
"""

import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from .config import settings
from .api import session_router, interview_router, credits_router
from .core.logging_config import setup_logging
from .deps import build_services
from .errors import InterviewAceError
from .middleware import RequestLoggingMiddleware
from .storage import StorageError

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    setup_logging(settings)

    # Tests may install their own wiring before startup
    if getattr(app.state, "services", None) is None:
        app.state.services = build_services(settings)
        logger.info("Interview services initialized")

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Storage path: {settings.local_storage_path}")
    logger.info(f"LLM provider: {settings.llm_provider}")
    logger.info(f"Log level: {settings.log_level.upper()}")
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.app_name}")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Live interview assistant with session-based credit metering",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware (after CORS)
if settings.log_api_requests:
    app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(InterviewAceError)
async def interview_error_handler(request: Request, exc: InterviewAceError):
    """Render core errors as ``{"detail": {error, message, code, details}}``."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": {
            "error": "storage_error",
            "message": "Could not save your data. Please try again.",
            "code": 500,
            "details": None,
        }},
    )


# Include routers
app.include_router(session_router)
app.include_router(interview_router)
app.include_router(credits_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "storage": settings.storage_type,
        "version": settings.app_version
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "interviewace.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
