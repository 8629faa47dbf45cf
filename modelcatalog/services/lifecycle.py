"""
Model record lifecycle orchestration.

Keeps a record's asset references in step with the object store across
create, edit and delete. There is no transaction spanning the metadata
store and the object store, so the order of operations below defines what
a partial failure leaves behind:

- create: metadata insert; on failure every input key is reclaimed (best effort).
- edit:   superseded keys are reclaimed first, then the metadata update is
          written. A failed write leaves the record pointing at deleted keys.
- delete: ownership check, all keys reclaimed, then the metadata delete.
          A failed delete leaves a record whose keys no longer resolve.

Reclamation failures are logged and counted, never surfaced. Nothing is
retried and nothing is locked; concurrent edits and deletes race freely.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable
from uuid import uuid4

from modelcatalog.auth.permissions import check_record_ownership
from modelcatalog.core.exceptions import NotFoundError, PersistenceError, ReclamationFailure
from modelcatalog.models.model_record import ModelRecord
from modelcatalog.schemas.model_record import (
    AuthorProjection,
    ModelRecordCreate,
    ModelRecordUpdate,
    RecordFilter,
)
from modelcatalog.services.asset_diff import diff_asset_references
from modelcatalog.services.author_directory import AuthorDirectory
from modelcatalog.services.metrics import MetricsCollector, get_metrics_collector
from modelcatalog.services.record_repository import ModelRecordRepository
from modelcatalog.storage.base import StorageBackend

logger = logging.getLogger(__name__)


@dataclass
class RecordView:
    """A record with its author projection attached."""

    record: ModelRecord
    author: AuthorProjection | None = None


def record_asset_keys(record: ModelRecord) -> list[str]:
    """Every key a stored record references: image, video, then each file."""
    keys = [k for k in (record.image_id, record.video_id) if k]
    keys.extend(f["key"] for f in record.model_files or [] if f.get("key"))
    return keys


class LifecycleOrchestrator:
    """Sequences object store reclamation and metadata store writes."""

    def __init__(
        self,
        records: ModelRecordRepository,
        storage: StorageBackend,
        authors: AuthorDirectory,
        metrics: MetricsCollector | None = None,
    ):
        self.records = records
        self.storage = storage
        self.authors = authors
        self.metrics = metrics or get_metrics_collector()

    async def create_record(
        self,
        data: ModelRecordCreate,
        user_claims: dict[str, Any],
    ) -> ModelRecord:
        """
        Create a record for assets the author has already uploaded.

        Args:
            data: Proposed record
            user_claims: Identity of the creating author

        Returns:
            The stored record

        Raises:
            PersistenceError: The metadata write failed. Every asset key in
                the input has been passed to reclamation before this is raised.
        """
        record = ModelRecord(
            id=str(uuid4()),
            title=data.title,
            description=data.description,
            is_public=data.is_public,
            image_id=data.image_id,
            video_id=data.video_id,
            model_files=data.stored_model_files(),
            author_id=user_claims["user_id"],
            date_created=datetime.now(timezone.utc),
        )

        try:
            await self.authors.ensure(user_claims)
            stored = await self.records.insert(record)
        except PersistenceError as e:
            logger.error(f"Failed to save model '{data.title}', rolling back uploaded assets: {e.cause}")
            await self._reclaim_all(data.asset_keys(), reason="create_rollback")
            raise

        logger.info(f"Created model {stored.id} for author {stored.author_id}")
        return stored

    async def edit_record(
        self,
        record_id: str,
        data: ModelRecordUpdate,
        user_claims: dict[str, Any],
    ) -> ModelRecord:
        """
        Apply an edit, reclaiming any asset keys it supersedes.

        Any identity may edit any record; no ownership check is made here.

        Raises:
            NotFoundError: No record with this id (checked before any side effect)
            PersistenceError: The metadata update failed after superseded
                keys were already reclaimed
        """
        existing = await self.records.find_by_id(record_id)
        if existing is None:
            raise NotFoundError(record_id)

        fields = data.to_fields()
        logger.debug(f"Edit request for {record_id} by {user_claims.get('user_id')}: {sorted(fields)}")

        diff = diff_asset_references(existing, fields)
        if diff:
            await self._reclaim_all(diff.superseded_keys, reason="edit")

        if not fields:
            return existing

        updated = await self.records.update_by_id(record_id, fields)
        if updated is None:
            # Deleted between the load and the write
            raise NotFoundError(record_id)

        return updated

    async def delete_record(self, record_id: str, user_claims: dict[str, Any]) -> None:
        """
        Delete a record and reclaim all of its assets.

        Raises:
            NotFoundError: No record with this id
            AuthorizationError: Caller is not the author; nothing was changed
            PersistenceError: The metadata delete failed after the assets
                were already reclaimed
        """
        record = await self.records.find_by_id(record_id)
        if record is None:
            raise NotFoundError(record_id)

        check_record_ownership(record, user_claims)

        await self._reclaim_all(record_asset_keys(record), reason="delete")

        deleted = await self.records.delete_by_id(record_id)
        if not deleted:
            logger.warning(f"Model {record_id} was already gone when its metadata was deleted")

        logger.info(f"Deleted model {record_id}")

    async def retrieve_all(self, record_filter: RecordFilter) -> list[RecordView]:
        """List records, most recent first, each with its author projection."""
        records = await self.records.find(record_filter)
        authors = await self.authors.project(r.author_id for r in records)
        return [RecordView(record=r, author=authors.get(r.author_id)) for r in records]

    async def get_record(self, record_id: str) -> RecordView:
        """Get a single record with its author projection."""
        record = await self.records.find_by_id(record_id)
        if record is None:
            raise NotFoundError(record_id)

        authors = await self.authors.project([record.author_id])
        return RecordView(record=record, author=authors.get(record.author_id))

    async def _reclaim(self, key: str) -> None:
        try:
            await self.storage.delete(key)
        except Exception as e:
            raise ReclamationFailure(key, e) from e

    async def _reclaim_all(self, keys: Iterable[str], reason: str) -> list[ReclamationFailure]:
        """
        Delete keys one at a time, in order, each awaited before the next.

        A failure on one key does not stop the rest. Failures are logged and
        returned, never raised.
        """
        failures: list[ReclamationFailure] = []

        for key in dict.fromkeys(keys):
            try:
                await self._reclaim(key)
            except ReclamationFailure as failure:
                logger.warning(f"Reclamation ({reason}) failed, asset may be orphaned: {failure.message}")
                self.metrics.record_reclamation(reason, succeeded=False)
                failures.append(failure)
            else:
                logger.info(f"Reclaimed asset ({reason}): {key}")
                self.metrics.record_reclamation(reason, succeeded=True)

        return failures
