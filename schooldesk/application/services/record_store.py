"""Record store: the authoritative in-memory collection and its read/write paths.

The collection is only ever replaced wholesale by ``resync``, which the
backend calls with a full snapshot after every change it accepts. Mutations
never touch the collection directly: they validate, check permissions,
delegate to the backend and invalidate the query cache.
"""

import logging
from collections.abc import Callable, Mapping, MutableMapping, Sequence
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Awaitable, TypeVar

from schooldesk.application.interfaces import BackendResult, RecordBackend
from schooldesk.application.services.auth_service import build_credential_index
from schooldesk.application.services.change_broadcaster import (
    RECORDS_CHANGED,
    STORE_ERROR,
    ChangeBroadcaster,
)
from schooldesk.application.services.query_cache import QueryCache, make_cache_key
from schooldesk.config import Settings, get_settings
from schooldesk.domain.access_policy import (
    can_approve,
    can_create,
    can_grant_role,
    can_read,
    can_write,
)
from schooldesk.domain.entities import (
    STAMP_FIELDS,
    Credential,
    Identity,
    Record,
    RecordType,
    TeacherRecord,
    record_from_fields,
    type_tag,
    utc_now,
)
from schooldesk.domain.exceptions import (
    BackendError,
    CapacityExceededError,
    PermissionDeniedError,
    RecordNotFoundError,
    RecordStoreError,
    RecordValidationError,
)
from schooldesk.domain.validation import ValidationContext, validate
from schooldesk.infrastructure.logging.operation_logger import OperationLogger, StoreOperation

logger = logging.getLogger(__name__)
olog = OperationLogger("RecordStore")

T = TypeVar("T")

# Fields an update may never change.
_IMMUTABLE_FIELDS = frozenset({"type", "id", "author", "created_at", "updated_at"})
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)
_MISSING = object()


def _lookup(data: Mapping[str, Any], path: str) -> Any:
    """Resolve a dotted path like ``guardian.phone`` inside nested mappings."""
    value: Any = data
    for part in path.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _filter_equals(actual: Any, expected: Any) -> bool:
    """Exact match, reading string filter values as the field's own type.

    Query strings only carry text, so ``"10"`` matches a numeric ``10`` and
    ``"true"`` matches a boolean ``True``.
    """
    if actual == expected:
        return True
    if not isinstance(expected, str):
        return False
    if isinstance(actual, bool):
        return expected.strip().lower() == str(actual).lower()
    if isinstance(actual, (int, float)):
        try:
            return float(expected) == actual
        except ValueError:
            return False
    return False


def _matches(data: Mapping[str, Any], filters: Mapping[str, Any]) -> bool:
    return all(_filter_equals(_lookup(data, path), expected) for path, expected in filters.items())


def _sort_key(record: Record) -> datetime:
    return record.effective_timestamp or _OLDEST


def _build(factory: Callable[..., Record], *args: Any, **kwargs: Any) -> Record:
    """Run a record factory, reporting unusable field values as invalid input."""
    try:
        return factory(*args, **kwargs)
    except (TypeError, ValueError) as exc:
        raise RecordValidationError(f"Record fields are not valid: {exc}") from exc


def _check_role_grant(identity: Identity, record: Record) -> None:
    if isinstance(record, TeacherRecord) and not can_grant_role(identity, record.role):
        raise PermissionDeniedError("Only administrators and principals can assign that role")


class RecordStore:
    """Owns the record collection and orchestrates validation, access and caching.

    One instance is created per application and passed to its collaborators;
    there is no module-level state. ``credentials`` is the Auth
    collaborator's mutable index, rebuilt here on every resync.
    """

    def __init__(
        self,
        backend: RecordBackend,
        credentials: MutableMapping[str, Credential],
        *,
        settings: Settings | None = None,
        cache: QueryCache | None = None,
        broadcaster: ChangeBroadcaster | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._settings = settings or get_settings()
        self._backend = backend
        self._credentials = credentials
        self._cache = cache if cache is not None else QueryCache(
            self._settings.cache_ttl_seconds,
            enabled=self._settings.cache_enabled,
        )
        self._broadcaster = broadcaster or ChangeBroadcaster()
        self._clock = clock
        self._records: tuple[Record, ...] = ()
        self._replace_credentials(build_credential_index(()))

    # ── Read-only views ──────────────────────────────────────────────

    @property
    def records(self) -> tuple[Record, ...]:
        return self._records

    @property
    def credentials(self) -> Mapping[str, Credential]:
        return MappingProxyType(self._credentials)

    @property
    def cache(self) -> QueryCache:
        return self._cache

    @property
    def broadcaster(self) -> ChangeBroadcaster:
        return self._broadcaster

    def get(self, record_id: str) -> Record | None:
        return next((r for r in self._records if r.id == record_id), None)

    # ── Lifecycle ────────────────────────────────────────────────────

    async def start(self) -> bool:
        """Connect to the backend and start the cache sweeper.

        A failed backend initialization is reported, not raised: the store
        keeps serving whatever collection it has.
        """
        result = await self._backend.initialize(
            on_changed=self.resync,
            on_error=self.report_backend_error,
        )
        if not result.ok:
            await self.report_backend_error(
                result.message or "Failed to initialize the record backend"
            )
        await self._cache.start_sweeper(self._settings.cache_sweep_interval_seconds)
        return result.ok

    async def close(self) -> None:
        await self._cache.stop_sweeper()

    # ── Synchronization ──────────────────────────────────────────────

    async def resync(self, records: Sequence[Record]) -> None:
        """Replace the whole collection with the backend's snapshot."""
        with olog.timed_step(StoreOperation.RESYNC, "Replacing record collection", count=len(records)):
            self._records = tuple(records)
            self._replace_credentials(build_credential_index(self._records))
            self._cache.invalidate_all()
            olog.detail("Credential index rebuilt", accounts=len(self._credentials))
        await self._broadcaster.publish(RECORDS_CHANGED)

    async def report_backend_error(self, message: str) -> None:
        logger.error("Record backend error: %s", message)
        await self._broadcaster.publish(STORE_ERROR, {"message": message})

    def _replace_credentials(self, index: dict[str, Credential]) -> None:
        self._credentials.clear()
        self._credentials.update(index)

    # ── Queries ──────────────────────────────────────────────────────

    def query(
        self,
        identity: Identity | None,
        record_type: RecordType | str,
        filters: Mapping[str, Any] | None = None,
    ) -> list[Record]:
        """Visible records of one type, exact-match filtered, newest first.

        Filters are dotted paths into the record's fields; ``None`` and
        empty-string values are ignored rather than matched.
        """
        key = make_cache_key(record_type, dict(filters or {}), identity)
        cached = self._cache.get(key)
        if cached is not None:
            return list(cached)

        result = self._compute_query(identity, record_type, filters or {})
        self._cache.set(key, tuple(result))
        return result

    def _compute_query(
        self,
        identity: Identity | None,
        record_type: RecordType | str,
        filters: Mapping[str, Any],
    ) -> list[Record]:
        tag = type_tag(record_type)
        visible = can_read(identity)
        matches = [r for r in self._records if r.type == tag and visible(r)]

        active = {k: v for k, v in filters.items() if v is not None and v != ""}
        if active:
            matches = [r for r in matches if _matches(r.to_public_dict(), active)]

        # list.sort is stable, so equal timestamps keep collection order
        matches.sort(key=_sort_key, reverse=True)
        return matches

    def statistics(self) -> dict[str, int]:
        """Record counts per type across the whole collection."""
        counts = {t.value: 0 for t in RecordType}
        for record in self._records:
            if record.type in counts:
                counts[record.type] += 1
        return counts

    # ── Mutations ────────────────────────────────────────────────────

    async def create(
        self,
        identity: Identity,
        record_type: RecordType | str,
        fields: Mapping[str, Any],
    ) -> Record:
        """Validate, stamp and persist a new record; returns the backend's copy."""
        tag = type_tag(record_type)
        with olog.timed_step(StoreOperation.CREATE, f"Creating {tag} record", author=identity.display_name):
            record = await self._guard(self._create(identity, record_type, fields))
        await self._broadcaster.publish(RECORDS_CHANGED)
        return record

    async def update(
        self,
        identity: Identity,
        record_id: str,
        changes: Mapping[str, Any],
    ) -> Record:
        """Merge ``changes`` onto an existing record and persist the result."""
        with olog.timed_step(StoreOperation.UPDATE, f"Updating record {record_id}", author=identity.display_name):
            record = await self._guard(self._update(identity, record_id, changes))
        await self._broadcaster.publish(RECORDS_CHANGED)
        return record

    async def delete(self, identity: Identity, record_id: str) -> None:
        with olog.timed_step(StoreOperation.DELETE, f"Deleting record {record_id}", author=identity.display_name):
            await self._guard(self._delete(identity, record_id))
        await self._broadcaster.publish(RECORDS_CHANGED)

    async def _guard(self, operation: Awaitable[T]) -> T:
        """Report a rejected mutation to listeners before re-raising it."""
        try:
            return await operation
        except RecordStoreError as exc:
            await self._broadcaster.publish(STORE_ERROR, {"message": exc.message})
            raise

    async def _create(
        self,
        identity: Identity,
        record_type: RecordType | str,
        fields: Mapping[str, Any],
    ) -> Record:
        if not can_create(identity):
            raise PermissionDeniedError()

        result = validate(record_type, fields, self._validation_context())
        if not result.valid:
            raise RecordValidationError(result.message or "Invalid record")

        limit = self._settings.max_data_items
        if len(self._records) >= limit:
            raise CapacityExceededError(limit)

        record = _build(
            record_from_fields,
            record_type,
            {k: v for k, v in fields.items() if k not in STAMP_FIELDS},
            author=identity.display_name,
            created_at=self._clock(),
            approved=identity.role.auto_approves,
        )
        _check_role_grant(identity, record)
        outcome = await self._call_backend(self._backend.create(record), "Failed to save record")
        if outcome.data is None:
            raise BackendError("Failed to save record", "backend returned no record")
        self._cache.invalidate_all()
        return outcome.data

    async def _update(
        self,
        identity: Identity,
        record_id: str,
        changes: Mapping[str, Any],
    ) -> Record:
        existing = self.get(record_id)
        if existing is None:
            raise RecordNotFoundError(record_id)
        if not can_write(identity, existing):
            raise PermissionDeniedError()
        if not isinstance(changes, Mapping):
            raise RecordValidationError("Record fields must be a mapping")

        allowed = {k: v for k, v in changes.items() if k not in _IMMUTABLE_FIELDS}
        if (
            "approved" in allowed
            and (allowed["approved"] is True) != existing.approved
            and not can_approve(identity)
        ):
            raise PermissionDeniedError("Only administrators and principals can change approval")

        merged = _build(existing.merged, allowed, updated_at=self._clock())
        if "role" in allowed:
            _check_role_grant(identity, merged)

        # Partial updates are re-checked against the full create-time rules
        # unless revalidate_on_update is switched off.
        if self._settings.revalidate_on_update:
            result = validate(existing.type, merged.to_fields(), self._validation_context(existing.id))
            if not result.valid:
                raise RecordValidationError(result.message or "Invalid record")

        outcome = await self._call_backend(self._backend.update(merged), "Failed to update record")
        self._cache.invalidate_all()
        return outcome.data if outcome.data is not None else merged

    async def _delete(self, identity: Identity, record_id: str) -> None:
        existing = self.get(record_id)
        if existing is None:
            raise RecordNotFoundError(record_id)
        if not can_write(identity, existing):
            raise PermissionDeniedError()

        await self._call_backend(self._backend.delete(existing), "Failed to delete record")
        self._cache.invalidate_all()

    async def _call_backend(
        self,
        call: Awaitable[BackendResult[T]],
        failure_message: str,
    ) -> BackendResult[T]:
        try:
            outcome = await call
        except Exception as exc:
            logger.exception("%s: backend raised", failure_message)
            raise BackendError(failure_message, str(exc)) from exc
        if not outcome.ok:
            raise BackendError(failure_message, outcome.message)
        return outcome

    def _validation_context(self, record_id: str | None = None) -> ValidationContext:
        return ValidationContext(
            credentials=self.credentials,
            record_id=record_id,
            password_min_length=self._settings.password_min_length,
        )
