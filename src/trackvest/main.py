"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from trackvest.app_context import get_app_context, set_app_context
from trackvest.config.settings import get_settings
from trackvest.config.logging_config import setup_logging
from trackvest.api.routers import market_router
from trackvest.core.exceptions import AppError

# HTTP status per AppError code; anything else is a 400
_ERROR_STATUS = {
    "VALIDATION_ERROR": 400,
    "MARKET_CLOSED": 409,
    "PRICE_UNAVAILABLE": 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging()
    yield
    # Shutdown: release the upstream HTTP client
    await get_app_context().close()
    set_app_context(None)


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Trading-day aware market data cache with simulated-price fallback",
    version=settings.app_version,
    lifespan=lifespan,
)

# Include routers
app.include_router(market_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    return JSONResponse(
        status_code=_ERROR_STATUS.get(exc.code, 400),
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
