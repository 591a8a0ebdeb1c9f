"""Pydantic DTOs (Data Transfer Objects) for the record endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from schooldesk.domain.entities import Record


class RecordResponse(BaseModel):
    """A record as returned to clients: stamp fields plus every variant field."""

    model_config = ConfigDict(extra="allow")

    id: str | None
    type: str
    author: str
    approved: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, record: Record) -> "RecordResponse":
        return cls.model_validate(record.to_public_dict())


class StatisticsResponse(BaseModel):
    """Record counts per type."""

    counts: dict[str, int]
    total: int
