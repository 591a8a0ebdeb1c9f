"""Health check endpoint: no authentication, always available."""

from fastapi import APIRouter, Depends

from schooldesk.application.services import RecordStore
from schooldesk.config import Settings
from schooldesk.infrastructure.dependencies import get_record_store, get_settings_from_app

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(
    settings: Settings = Depends(get_settings_from_app),
    store: RecordStore = Depends(get_record_store),
) -> dict:
    """Returns the application health status and the size of the collection."""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.app_env,
        "records": len(store.records),
        "cache_entries": len(store.cache),
    }
