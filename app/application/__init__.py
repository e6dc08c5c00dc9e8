"""Application layer module.

Contains application services (use cases) that orchestrate
domain logic and infrastructure.
"""

from app.application.admin_session import AdminSession, AdminSessionManager
from app.application.catalog_service import CatalogService, DeleteResult
from app.application.listing_cache import ListingCache

__all__ = [
    "AdminSession",
    "AdminSessionManager",
    "CatalogService",
    "DeleteResult",
    "ListingCache",
]
