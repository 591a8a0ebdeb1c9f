"""In-process record backend: used for development and tests."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace
from uuid import uuid4

from schooldesk.application.interfaces import (
    BackendResult,
    ChangeHandler,
    ErrorHandler,
    RecordBackend,
)
from schooldesk.domain.entities import Record

logger = logging.getLogger(__name__)


class InMemoryRecordBackend(RecordBackend):
    """Keeps records in a dict and pushes a full snapshot after each change.

    ``fail_next`` queues a failure message for the next create/update/delete,
    which lets callers exercise the store's error paths.
    """

    def __init__(
        self,
        records: Iterable[Record] = (),
        *,
        id_factory: Callable[[], str] = lambda: str(uuid4()),
    ) -> None:
        self._id_factory = id_factory
        self._records: dict[str, Record] = {}
        for record in records:
            stored = record if record.id else replace(record, id=id_factory())
            self._records[stored.id] = stored
        self._on_changed: ChangeHandler | None = None
        self._on_error: ErrorHandler | None = None
        self._pending_failures: list[str] = []

    @property
    def records(self) -> list[Record]:
        return list(self._records.values())

    def fail_next(self, message: str) -> None:
        self._pending_failures.append(message)

    async def report_error(self, message: str) -> None:
        """Push an out-of-band error to the registered handler."""
        if self._on_error is not None:
            await self._on_error(message)

    async def initialize(
        self,
        on_changed: ChangeHandler,
        on_error: ErrorHandler,
    ) -> BackendResult[None]:
        self._on_changed = on_changed
        self._on_error = on_error
        await self._notify()
        return BackendResult.success()

    async def create(self, record: Record) -> BackendResult[Record]:
        if self._pending_failures:
            return BackendResult.failure(self._pending_failures.pop(0))
        stored = replace(record, id=self._id_factory())
        self._records[stored.id] = stored
        logger.debug("Stored %s record %s", stored.type, stored.id)
        await self._notify()
        return BackendResult.success(stored)

    async def update(self, record: Record) -> BackendResult[Record]:
        if self._pending_failures:
            return BackendResult.failure(self._pending_failures.pop(0))
        if record.id not in self._records:
            return BackendResult.failure(f"Record '{record.id}' does not exist")
        self._records[record.id] = record
        await self._notify()
        return BackendResult.success(record)

    async def delete(self, record: Record) -> BackendResult[None]:
        if self._pending_failures:
            return BackendResult.failure(self._pending_failures.pop(0))
        if self._records.pop(record.id, None) is None:
            return BackendResult.failure(f"Record '{record.id}' does not exist")
        await self._notify()
        return BackendResult.success()

    async def _notify(self) -> None:
        if self._on_changed is not None:
            await self._on_changed(list(self._records.values()))
