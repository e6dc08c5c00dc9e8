"""API layer module.

Contains FastAPI routers and request/response schemas.
"""

from app.api.auth import router as auth_router
from app.api.health import router as health_router
from app.api.products import router as products_router
from app.api.uploads import router as uploads_router

__all__ = [
    "auth_router",
    "health_router",
    "products_router",
    "uploads_router",
]
