"""Record backend persisted through SQLAlchemy async sessions."""

import logging
from dataclasses import replace
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from schooldesk.application.interfaces import (
    BackendResult,
    ChangeHandler,
    ErrorHandler,
    RecordBackend,
)
from schooldesk.domain.entities import STAMP_FIELDS, Record, record_from_fields
from schooldesk.infrastructure.database import Base, RecordModel, create_session_factory

logger = logging.getLogger(__name__)


class SQLAlchemyRecordBackend(RecordBackend):
    """Implements the RecordBackend port on a relational database.

    Each call uses its own session with commit/rollback boundaries. After
    every accepted change the full table is re-read and pushed to the
    change handler in insertion order.
    """

    def __init__(self, engine: AsyncEngine, *, create_schema: bool = True) -> None:
        self._engine = engine
        self._session_factory = create_session_factory(engine)
        self._create_schema = create_schema
        self._on_changed: ChangeHandler | None = None
        self._on_error: ErrorHandler | None = None

    # ── Mapping ──────────────────────────────────────────────────────

    def _to_entity(self, model: RecordModel) -> Record:
        """Map ORM model → domain entity."""
        return record_from_fields(
            model.type,
            model.data or {},
            id=model.record_id,
            author=model.author,
            approved=model.approved,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def _payload(record: Record) -> dict:
        return {k: v for k, v in record.to_dict().items() if k not in STAMP_FIELDS}

    def _to_model(self, entity: Record) -> RecordModel:
        """Map domain entity → ORM model (for creation)."""
        return RecordModel(
            record_id=entity.id,
            type=entity.type,
            author=entity.author,
            approved=entity.approved,
            data=self._payload(entity),
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    # ── RecordBackend ────────────────────────────────────────────────

    async def initialize(
        self,
        on_changed: ChangeHandler,
        on_error: ErrorHandler,
    ) -> BackendResult[None]:
        self._on_changed = on_changed
        self._on_error = on_error
        try:
            if self._create_schema:
                async with self._engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
            records = await self._load_all()
        except SQLAlchemyError as exc:
            logger.exception("Could not initialize record tables")
            return BackendResult.failure(f"Could not load records: {exc}")
        await on_changed(records)
        return BackendResult.success()

    async def create(self, record: Record) -> BackendResult[Record]:
        stored = replace(record, id=str(uuid4()))
        try:
            async with self._session_factory() as session:
                session.add(self._to_model(stored))
                await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Failed to insert %s record", record.type)
            return BackendResult.failure(str(exc))
        await self._notify()
        return BackendResult.success(stored)

    async def update(self, record: Record) -> BackendResult[Record]:
        try:
            async with self._session_factory() as session:
                model = await self._find(session, record.id)
                if model is None:
                    return BackendResult.failure(f"Record '{record.id}' does not exist")
                model.author = record.author
                model.approved = record.approved
                model.data = self._payload(record)
                model.updated_at = record.updated_at
                await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Failed to update record %s", record.id)
            return BackendResult.failure(str(exc))
        await self._notify()
        return BackendResult.success(record)

    async def delete(self, record: Record) -> BackendResult[None]:
        try:
            async with self._session_factory() as session:
                model = await self._find(session, record.id)
                if model is None:
                    return BackendResult.failure(f"Record '{record.id}' does not exist")
                await session.delete(model)
                await session.commit()
        except SQLAlchemyError as exc:
            logger.exception("Failed to delete record %s", record.id)
            return BackendResult.failure(str(exc))
        await self._notify()
        return BackendResult.success()

    # ── Helpers ──────────────────────────────────────────────────────

    @staticmethod
    async def _find(session, record_id: str | None) -> RecordModel | None:
        result = await session.execute(
            select(RecordModel).where(RecordModel.record_id == record_id)
        )
        return result.scalar_one_or_none()

    async def _load_all(self) -> list[Record]:
        async with self._session_factory() as session:
            result = await session.execute(select(RecordModel).order_by(RecordModel.seq))
            return [self._to_entity(row) for row in result.scalars().all()]

    async def _notify(self) -> None:
        if self._on_changed is None:
            return
        try:
            records = await self._load_all()
        except SQLAlchemyError as exc:
            logger.exception("Failed to reload records after a change")
            if self._on_error is not None:
                await self._on_error(f"Could not reload records: {exc}")
            return
        await self._on_changed(records)

    async def close(self) -> None:
        await self._engine.dispose()
