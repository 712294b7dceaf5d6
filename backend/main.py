"""
FastAPI backend application entry point.

Run with:
    python -m uvicorn backend.main:app --host localhost --port 8080 --ssl-keyfile key.pem --ssl-certfile cert.pem --reload
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import settings
from app.logging_config import get_logger, silence_noisy_loggers
from backend.routes import auth, api

logger = get_logger(__name__)

# Log immediately when module is imported (helps debug startup issues)
logger.info("Backend module loaded - initializing FastAPI application")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler - runs on startup and shutdown."""
    # Silence noisy loggers (after uvicorn has configured them)
    silence_noisy_loggers()

    logger.info("Starting Fossil Pie API")
    missing = settings.validate()
    if missing:
        logger.error(f"Yahoo OAuth is not configured, sign-in will fail: missing {', '.join(missing)}")
    if settings.YAHOO_REDIRECT_URI and not settings.YAHOO_REDIRECT_URI.startswith("https://"):
        logger.error("YAHOO_REDIRECT_URI must use https, sign-in will fail")
    yield
    logger.info("Shutting down Fossil Pie API")


app = FastAPI(
    title="Fossil Pie API",
    description="Yahoo Fantasy sign-in and league/roster API",
    version="0.1.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(api.router, prefix="/api", tags=["api"])


@app.get("/")
async def root(auth_error: Optional[str] = None) -> dict:
    """Landing endpoint; sign-in failures arrive here as ``?auth_error=...``."""
    body = {"status": "ok", "message": "Fossil Pie API"}
    if auth_error:
        body["auth_error"] = auth_error
    return body


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler to prevent stack traces from leaking to users.

    Logs the full exception with traceback for debugging, but returns
    a generic error message to the client.
    """
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
