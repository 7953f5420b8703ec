"""API routers package."""

from trackvest.api.routers.market import router as market_router

__all__ = [
    "market_router",
]
