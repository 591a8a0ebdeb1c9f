"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from schooldesk.application.interfaces import RecordBackend
from schooldesk.application.services import AuthService, LoginRateLimiter, RecordStore
from schooldesk.config import Settings, get_settings
from schooldesk.infrastructure.dependencies import build_record_backend
from schooldesk.infrastructure.logging.log_config import setup_logging
from schooldesk.presentation.api.v1.router import router as v1_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: connect the backend, build the store, start the sweeper."""
    settings: Settings = app.state.settings
    setup_logging(settings)

    backend: RecordBackend = app.state.backend or build_record_backend(settings)
    auth_service = AuthService(
        limiter=LoginRateLimiter(
            settings.max_login_attempts,
            settings.login_attempt_window_seconds,
        ),
    )
    store = RecordStore(backend, auth_service.credentials, settings=settings)

    app.state.auth_service = auth_service
    app.state.record_store = store

    if await store.start():
        logger.info("Record store ready with %d records", len(store.records))
    else:
        logger.warning("Record backend unavailable, serving an empty collection")

    yield

    # Shutdown
    await store.close()
    await store.broadcaster.shutdown()
    await backend.close()


def create_app(
    settings: Settings | None = None,
    backend: RecordBackend | None = None,
) -> FastAPI:
    """Factory function that builds and configures the FastAPI application.

    ``backend`` overrides the one selected by ``settings.record_backend``.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.backend = backend

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(v1_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "schooldesk.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
