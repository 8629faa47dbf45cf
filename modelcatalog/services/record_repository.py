"""
Metadata store access for model records.
Each write commits immediately so its outcome is known to the caller.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Sequence

from sqlalchemy import delete, or_, select, true, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from modelcatalog.core.exceptions import PersistenceError
from modelcatalog.models.model_record import ModelRecord
from modelcatalog.schemas.model_record import RecordFilter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def persistence_errors(db: AsyncSession, operation: str) -> AsyncIterator[None]:
    """Translate SQLAlchemy failures into PersistenceError, rolling the session back."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Metadata store {operation} failed: {e}")
        await db.rollback()
        raise PersistenceError(operation, e) from e


class ModelRecordRepository:
    """Find, insert, update and delete model records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, record_id: str) -> ModelRecord | None:
        async with persistence_errors(self.db, "find"):
            return await self._load(record_id)

    async def find(self, record_filter: RecordFilter) -> Sequence[ModelRecord]:
        """
        List records matching a filter, most recent first.

        With public_only, a record matches when is_public is TRUE or NULL.
        """
        query = select(ModelRecord)

        if record_filter.public_only:
            query = query.where(
                or_(
                    ModelRecord.is_public == true(),
                    ModelRecord.is_public.is_(None),
                )
            )
        if record_filter.author_id:
            query = query.where(ModelRecord.author_id == record_filter.author_id)

        query = query.order_by(ModelRecord.date_created.desc())

        async with persistence_errors(self.db, "find"):
            result = await self.db.execute(query)
            return result.scalars().all()

    async def insert(self, record: ModelRecord) -> ModelRecord:
        """Persist a new record together with anything pending on the session."""
        async with persistence_errors(self.db, "insert"):
            self.db.add(record)
            await self.db.commit()
        return record

    async def update_by_id(self, record_id: str, fields: dict[str, Any]) -> ModelRecord | None:
        """
        Apply field values to a record and return the stored result.

        Returns None when no row matched, e.g. the record was deleted
        after it was loaded.
        """
        async with persistence_errors(self.db, "update"):
            result = await self.db.execute(
                update(ModelRecord)
                .where(ModelRecord.id == record_id)
                .values(**fields)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()

            if result.rowcount == 0:
                return None

            return await self._load(record_id)

    async def delete_by_id(self, record_id: str) -> bool:
        """Delete a record. Returns False if nothing was deleted."""
        async with persistence_errors(self.db, "delete"):
            result = await self.db.execute(
                delete(ModelRecord)
                .where(ModelRecord.id == record_id)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
            return result.rowcount > 0

    async def _load(self, record_id: str) -> ModelRecord | None:
        query = (
            select(ModelRecord)
            .where(ModelRecord.id == record_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()
