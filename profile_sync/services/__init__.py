"""Service layer modules."""

from .api_client import ApiClient
from .catalog_service import CatalogService
from .gallery_service import GalleryService
from .profile_service import ProfileService
from .profile_store import ProfileStore
from .rating_service import RatingService
from .reconciler import CollectionReconciler, Mutation, ReconcileResult

__all__ = [
    "ApiClient",
    "CatalogService",
    "CollectionReconciler",
    "GalleryService",
    "Mutation",
    "ProfileService",
    "ProfileStore",
    "RatingService",
    "ReconcileResult",
]
