"""Abstract interface (port) for the external record persistence backend."""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from schooldesk.domain.entities import Record

T = TypeVar("T")

ChangeHandler = Callable[[Sequence[Record]], Awaitable[None]]
ErrorHandler = Callable[[str], Awaitable[None]]


@dataclass(frozen=True)
class BackendResult(Generic[T]):
    """Success/failure discriminant returned by every backend call.

    Failures carry a human-readable ``message`` only.
    """

    ok: bool
    data: T | None = None
    message: str | None = None

    @classmethod
    def success(cls, data: T | None = None) -> "BackendResult[T]":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, message: str) -> "BackendResult[T]":
        return cls(ok=False, message=message)


class RecordBackend(ABC):
    """Port for record persistence: implemented in the infrastructure layer.

    The backend is the single source of truth. After every change it
    accepts, it pushes the complete record snapshot to ``on_changed``.
    """

    @abstractmethod
    async def initialize(
        self,
        on_changed: ChangeHandler,
        on_error: ErrorHandler,
    ) -> BackendResult[None]:
        """Register change/error handlers and push the initial snapshot."""
        ...

    @abstractmethod
    async def create(self, record: Record) -> BackendResult[Record]:
        """Persist a new record; the returned record carries its assigned id."""
        ...

    @abstractmethod
    async def update(self, record: Record) -> BackendResult[Record]:
        """Replace a stored record with ``record`` (matched by id)."""
        ...

    @abstractmethod
    async def delete(self, record: Record) -> BackendResult[None]:
        """Remove a stored record."""
        ...

    async def close(self) -> None:
        """Release connections held by the backend."""
        return None
