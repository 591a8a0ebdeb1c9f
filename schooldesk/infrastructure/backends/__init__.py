"""Record backend implementations: concrete RecordBackend adapters."""

from .in_memory_backend import InMemoryRecordBackend
from .sqlalchemy_backend import SQLAlchemyRecordBackend

__all__ = ["InMemoryRecordBackend", "SQLAlchemyRecordBackend"]
