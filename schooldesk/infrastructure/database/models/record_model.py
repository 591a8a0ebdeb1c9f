"""SQLAlchemy ORM model for persisted school records."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from schooldesk.infrastructure.database.base import Base


class RecordModel(Base):
    """ORM model: maps to the 'records' table.

    Stamp fields get their own columns; every variant-specific field lives
    in the ``data`` JSON column. ``seq`` preserves insertion order.
    """

    __tablename__ = "records"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    record_id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    author: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=True,
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_records_type", "type"),
        Index("ix_records_author", "author"),
    )

    def __repr__(self) -> str:
        return f"<RecordModel(id={self.record_id}, type='{self.type}')>"
