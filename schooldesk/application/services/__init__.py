from .auth_service import SEED_ACCOUNTS, AuthService, LoginRateLimiter, build_credential_index
from .change_broadcaster import RECORDS_CHANGED, STORE_ERROR, ChangeBroadcaster
from .export_service import ExportFormat, ExportResult, ExportService
from .query_cache import QueryCache, make_cache_key
from .record_store import RecordStore

__all__ = [
    "SEED_ACCOUNTS",
    "AuthService",
    "LoginRateLimiter",
    "build_credential_index",
    "RECORDS_CHANGED",
    "STORE_ERROR",
    "ChangeBroadcaster",
    "ExportFormat",
    "ExportResult",
    "ExportService",
    "QueryCache",
    "make_cache_key",
    "RecordStore",
]
