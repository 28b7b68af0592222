"""Asset bridge API routes."""

from services.asset_bridge.routes.assets import router as assets_router

__all__ = [
    "assets_router",
]
