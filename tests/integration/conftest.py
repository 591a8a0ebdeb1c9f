"""Fixtures for tests that drive the FastAPI application in-process."""

from contextlib import asynccontextmanager

import pytest
from httpx import ASGITransport, AsyncClient

from schooldesk.application.interfaces import RecordBackend
from schooldesk.config import Settings
from schooldesk.main import create_app


@asynccontextmanager
async def _running_app(backend: RecordBackend | None = None, **overrides):
    """Build an app on the in-memory backend and run its lifespan around a client."""
    settings = Settings(record_backend="memory", **overrides)
    app = create_app(settings, backend=backend)
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest.fixture
def running_app():
    return _running_app
