"""Router aggregations for public API endpoints."""

from fastapi import APIRouter

from notification_center.api.routes import health, notifications
from notification_center.core.config import settings

# Health router (no prefix)
root_router = APIRouter()
root_router.include_router(health.router, tags=["health"])

# API routers under the configurable prefix
api_router = APIRouter(prefix=settings.api_v1_prefix)
api_router.include_router(notifications.router)

__all__ = ["api_router", "root_router"]
