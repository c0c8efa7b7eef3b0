"""API routers package."""

from .search_admin import router as search_admin_router

__all__ = [
    "search_admin_router",
]
