"""FastAPI dependency injection: wires infrastructure to the application layer."""

import math

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from schooldesk.application.interfaces import RecordBackend
from schooldesk.application.services import AuthService, ExportService, RecordStore
from schooldesk.config import Settings
from schooldesk.domain.entities import Identity
from schooldesk.domain.exceptions import TooManyLoginAttemptsError
from schooldesk.infrastructure.backends import InMemoryRecordBackend, SQLAlchemyRecordBackend
from schooldesk.infrastructure.database import create_engine_from_url
from schooldesk.infrastructure.export import OpenpyxlSpreadsheetEncoder

_basic_auth = HTTPBasic(realm="schooldesk")


def build_record_backend(settings: Settings) -> RecordBackend:
    """Select the persistence backend named by ``settings.record_backend``."""
    if settings.record_backend == "memory":
        return InMemoryRecordBackend()
    engine = create_engine_from_url(
        settings.database_url,
        echo=(settings.app_env == "development" and settings.log_level_sql == "DEBUG"),
    )
    return SQLAlchemyRecordBackend(engine)


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_record_store(request: Request) -> RecordStore:
    """Provides the application's single RecordStore instance."""
    return request.app.state.record_store


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_export_service(
    store: RecordStore = Depends(get_record_store),
) -> ExportService:
    """Provides an ExportService bound to the store, with XLSX support."""
    return ExportService(store, OpenpyxlSpreadsheetEncoder())


def get_current_identity(
    credentials: HTTPBasicCredentials = Depends(_basic_auth),
    auth: AuthService = Depends(get_auth_service),
) -> Identity:
    """Resolves HTTP Basic credentials against the credential index."""
    try:
        identity = auth.authenticate(credentials.username, credentials.password)
    except TooManyLoginAttemptsError as exc:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many failed login attempts, try again later",
            headers={"Retry-After": str(math.ceil(exc.retry_after))},
        ) from exc
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Basic"},
        )
    return identity
