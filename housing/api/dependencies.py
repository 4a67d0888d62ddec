"""
FastAPI dependency injection wiring.

Each dependency function returns a fully-constructed object with its
collaborators injected, so route handlers stay thin.
"""
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from housing.application.interfaces.housing_share_repository import HousingShareRepository
from housing.application.interfaces.object_store import ObjectStore
from housing.application.media.media_orchestrator import MediaOrchestrator
from housing.application.queries.query_compositor import QueryCompositor
from housing.application.services.listing_lifecycle_manager import ListingLifecycleManager
from housing.config import settings
from housing.infrastructure.database.connection import AsyncSessionLocal
from housing.infrastructure.database.repositories.housing_share_repository import (
    SqlAlchemyHousingShareRepository,
)
from housing.infrastructure.object_store.factory import create_object_store


# ---- Low-level dependencies ------------------------------------------------

def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return AsyncSessionLocal


def get_listing_repo(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> HousingShareRepository:
    return SqlAlchemyHousingShareRepository(session_factory)


@lru_cache
def get_object_store() -> ObjectStore:
    return create_object_store(settings)


# ---- Core components -------------------------------------------------------

def get_media_orchestrator(
    object_store: ObjectStore = Depends(get_object_store),
) -> MediaOrchestrator:
    return MediaOrchestrator(
        object_store,
        upload_timeout=settings.upload_timeout_seconds,
        delete_timeout=settings.delete_timeout_seconds,
        rollback_timeout=settings.rollback_timeout_seconds,
    )


def get_query_compositor(
    listing_repo: HousingShareRepository = Depends(get_listing_repo),
) -> QueryCompositor:
    return QueryCompositor(
        listing_repo,
        timeout=settings.store_timeout_seconds,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )


def get_listing_manager(
    listing_repo: HousingShareRepository = Depends(get_listing_repo),
    media: MediaOrchestrator = Depends(get_media_orchestrator),
    queries: QueryCompositor = Depends(get_query_compositor),
) -> ListingLifecycleManager:
    return ListingLifecycleManager(
        listing_repo,
        media,
        queries,
        store_timeout=settings.store_timeout_seconds,
    )
