"""
Tests for the model record lifecycle orchestrator.

Metadata store and author directory are in-memory fakes; the object store
records every delete so reclamation order can be checked.
"""

from datetime import datetime, timedelta, timezone

import pytest

from modelcatalog.core.exceptions import AuthorizationError, NotFoundError, PersistenceError
from modelcatalog.models.model_record import ModelRecord
from modelcatalog.schemas.model_record import (
    AuthorProjection,
    ModelRecordCreate,
    ModelRecordUpdate,
    RecordFilter,
)
from modelcatalog.services.lifecycle import LifecycleOrchestrator, record_asset_keys
from modelcatalog.services.metrics import MetricsCollector


class FakeRecordRepository:
    """In-memory metadata store. Operations named in fail_on raise PersistenceError."""

    def __init__(self, events: list, records=(), fail_on=()):
        self.events = events
        self.rows = {r.id: r for r in records}
        self.fail_on = set(fail_on)

    def _maybe_fail(self, operation: str):
        if operation in self.fail_on:
            raise PersistenceError(operation, RuntimeError("metadata store unavailable"))

    async def find_by_id(self, record_id):
        return self.rows.get(record_id)

    async def find(self, record_filter):
        rows = [
            r for r in self.rows.values()
            if not record_filter.public_only or r.is_public is not False
        ]
        return sorted(rows, key=lambda r: r.date_created, reverse=True)

    async def insert(self, record):
        self.events.append(("insert", record.id))
        self._maybe_fail("insert")
        self.rows[record.id] = record
        return record

    async def update_by_id(self, record_id, fields):
        self.events.append(("update", record_id))
        self._maybe_fail("update")
        record = self.rows.get(record_id)
        if record is None:
            return None
        for name, value in fields.items():
            setattr(record, name, value)
        return record

    async def delete_by_id(self, record_id):
        self.events.append(("delete", record_id))
        self._maybe_fail("delete")
        return self.rows.pop(record_id, None) is not None


class FakeAuthorDirectory:
    def __init__(self, authors=()):
        self.authors = {a.id: a for a in authors}
        self.ensured = []

    async def project(self, author_ids):
        return {i: self.authors[i] for i in set(author_ids) if i in self.authors}

    async def ensure(self, user_claims):
        self.ensured.append(user_claims["user_id"])


def make_record(record_id="rec-1", author_id="dev-user-001", **fields) -> ModelRecord:
    return ModelRecord(
        id=record_id,
        title=fields.get("title", "Robot Arm"),
        description=fields.get("description", ""),
        author_id=author_id,
        is_public=fields.get("is_public", True),
        image_id=fields.get("image_id", "old.png"),
        video_id=fields.get("video_id", "v1.mp4"),
        model_files=fields.get("model_files", [{"key": "f1"}, {"key": "f2"}]),
        date_created=fields.get("date_created", datetime.now(timezone.utc)),
    )


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def create_payload() -> ModelRecordCreate:
    return ModelRecordCreate.model_validate({
        "title": "Robot Arm",
        "imageId": "img1.png",
        "videoId": "v1.mp4",
        "modelFiles": [{"key": "a.glb"}, {"key": "b.glb"}],
    })


class TestCreateRecord:
    """Creation and best-effort rollback."""

    @pytest.mark.asyncio
    async def test_create_success(self, events, recording_storage, metrics, create_payload, author_claims):
        repo = FakeRecordRepository(events)
        authors = FakeAuthorDirectory()
        storage = recording_storage(keys=create_payload.asset_keys())
        orchestrator = LifecycleOrchestrator(repo, storage, authors, metrics)

        record = await orchestrator.create_record(create_payload, author_claims)

        assert record.id in repo.rows
        assert record.author_id == "dev-user-001"
        assert record.image_id == "img1.png"
        assert record.model_files == [{"key": "a.glb"}, {"key": "b.glb"}]
        assert record.date_created.tzinfo is not None
        assert authors.ensured == ["dev-user-001"]
        assert storage.deleted == []

    @pytest.mark.asyncio
    async def test_create_assigns_fresh_ids(self, events, recording_storage, metrics, create_payload, author_claims):
        repo = FakeRecordRepository(events)
        orchestrator = LifecycleOrchestrator(repo, recording_storage(), FakeAuthorDirectory(), metrics)

        first = await orchestrator.create_record(create_payload, author_claims)
        second = await orchestrator.create_record(create_payload, author_claims)

        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_create_failure_reclaims_every_key(
        self, events, recording_storage, metrics, create_payload, author_claims
    ):
        """A failed insert reclaims image, video and all files, then raises."""
        repo = FakeRecordRepository(events, fail_on={"insert"})
        storage = recording_storage(keys=create_payload.asset_keys())
        orchestrator = LifecycleOrchestrator(repo, storage, FakeAuthorDirectory(), metrics)

        with pytest.raises(PersistenceError):
            await orchestrator.create_record(create_payload, author_claims)

        assert storage.deleted == ["img1.png", "v1.mp4", "a.glb", "b.glb"]
        assert storage.objects == {}
        assert repo.rows == {}
        assert metrics.get_metrics()["reclamations"]["attempted"] == {"create_rollback": 4}

    @pytest.mark.asyncio
    async def test_create_rollback_continues_past_failed_delete(
        self, events, recording_storage, metrics, create_payload, author_claims
    ):
        repo = FakeRecordRepository(events, fail_on={"insert"})
        storage = recording_storage(keys=create_payload.asset_keys(), fail_keys={"v1.mp4"})
        orchestrator = LifecycleOrchestrator(repo, storage, FakeAuthorDirectory(), metrics)

        with pytest.raises(PersistenceError):
            await orchestrator.create_record(create_payload, author_claims)

        assert storage.deleted == ["img1.png", "v1.mp4", "a.glb", "b.glb"]
        assert set(storage.objects) == {"v1.mp4"}
        assert metrics.get_metrics()["reclamations"]["failed"] == {"create_rollback": 1}

    @pytest.mark.asyncio
    async def test_create_rollback_with_no_assets(self, events, recording_storage, metrics, author_claims):
        repo = FakeRecordRepository(events, fail_on={"insert"})
        storage = recording_storage()
        orchestrator = LifecycleOrchestrator(repo, storage, FakeAuthorDirectory(), metrics)

        with pytest.raises(PersistenceError):
            await orchestrator.create_record(ModelRecordCreate(title="Bare"), author_claims)

        assert storage.deleted == []


class TestEditRecord:
    """Edits reclaim superseded keys before the metadata write."""

    @pytest.mark.asyncio
    async def test_image_only_edit(self, events, recording_storage, metrics, author_claims):
        record = make_record()
        repo = FakeRecordRepository(events, records=[record])
        storage = recording_storage(keys=record_asset_keys(record))
        orchestrator = LifecycleOrchestrator(repo, storage, FakeAuthorDirectory(), metrics)

        updated = await orchestrator.edit_record(
            "rec-1", ModelRecordUpdate.model_validate({"imageId": "new.png"}), author_claims
        )

        assert storage.deleted == ["old.png"]
        assert updated.image_id == "new.png"
        assert updated.video_id == "v1.mp4"
        assert updated.model_files == [{"key": "f1"}, {"key": "f2"}]
        assert events == [("reclaim", "old.png"), ("update", "rec-1")]

    @pytest.mark.asyncio
    async def test_identical_file_list_reclaims_nothing(self, events, recording_storage, metrics, author_claims):
        repo = FakeRecordRepository(events, records=[make_record()])
        storage = recording_storage()
        orchestrator = LifecycleOrchestrator(repo, storage, FakeAuthorDirectory(), metrics)

        await orchestrator.edit_record(
            "rec-1",
            ModelRecordUpdate.model_validate({"modelFiles": [{"key": "f1"}, {"key": "f2"}]}),
            author_claims,
        )

        assert storage.deleted == []

    @pytest.mark.asyncio
    async def test_reordered_file_list_reclaims_whole_old_list(
        self, events, recording_storage, metrics, author_claims
    ):
        repo = FakeRecordRepository(events, records=[make_record()])
        storage = recording_storage(keys=["f1", "f2"])
        orchestrator = LifecycleOrchestrator(repo, storage, FakeAuthorDirectory(), metrics)

        updated = await orchestrator.edit_record(
            "rec-1",
            ModelRecordUpdate.model_validate({"modelFiles": [{"key": "f2"}, {"key": "f1"}]}),
            author_claims,
        )

        assert storage.deleted == ["f1", "f2"]
        # The record now references keys that no longer exist
        assert updated.model_files == [{"key": "f2"}, {"key": "f1"}]
        assert storage.objects == {}

    @pytest.mark.asyncio
    async def test_explicit_null_image_reclaims(self, events, recording_storage, metrics, author_claims):
        repo = FakeRecordRepository(events, records=[make_record()])
        storage = recording_storage()
        orchestrator = LifecycleOrchestrator(repo, storage, FakeAuthorDirectory(), metrics)

        updated = await orchestrator.edit_record(
            "rec-1", ModelRecordUpdate.model_validate({"imageId": None}), author_claims
        )

        assert storage.deleted == ["old.png"]
        assert updated.image_id is None

    @pytest.mark.asyncio
    async def test_title_only_edit(self, events, recording_storage, metrics, author_claims):
        repo = FakeRecordRepository(events, records=[make_record()])
        storage = recording_storage()
        orchestrator = LifecycleOrchestrator(repo, storage, FakeAuthorDirectory(), metrics)

        updated = await orchestrator.edit_record(
            "rec-1", ModelRecordUpdate.model_validate({"title": "Renamed"}), author_claims
        )

        assert storage.deleted == []
        assert updated.title == "Renamed"
        assert updated.image_id == "old.png"

    @pytest.mark.asyncio
    async def test_empty_edit_writes_nothing(self, events, recording_storage, metrics, author_claims):
        record = make_record()
        repo = FakeRecordRepository(events, records=[record])
        orchestrator = LifecycleOrchestrator(repo, recording_storage(), FakeAuthorDirectory(), metrics)

        result = await orchestrator.edit_record("rec-1", ModelRecordUpdate(), author_claims)

        assert result is record
        assert events == []

    @pytest.mark.asyncio
    async def test_edit_missing_record(self, events, recording_storage, metrics, author_claims):
        repo = FakeRecordRepository(events)
        storage = recording_storage()
        orchestrator = LifecycleOrchestrator(repo, storage, FakeAuthorDirectory(), metrics)

        with pytest.raises(NotFoundError):
            await orchestrator.edit_record(
                "missing", ModelRecordUpdate.model_validate({"imageId": "new.png"}), author_claims
            )

        assert events == []

    @pytest.mark.asyncio
    async def test_edit_write_failure_leaves_dangling_references(
        self, events, recording_storage, metrics, author_claims
    ):
        """Reclamation already happened when the write fails; nothing restores it."""
        record = make_record()
        repo = FakeRecordRepository(events, records=[record], fail_on={"update"})
        storage = recording_storage(keys=record_asset_keys(record))
        orchestrator = LifecycleOrchestrator(repo, storage, FakeAuthorDirectory(), metrics)

        with pytest.raises(PersistenceError):
            await orchestrator.edit_record(
                "rec-1", ModelRecordUpdate.model_validate({"imageId": "new.png"}), author_claims
            )

        assert repo.rows["rec-1"].image_id == "old.png"
        assert not await storage.exists("old.png")

    @pytest.mark.asyncio
    async def test_non_author_may_edit(self, events, recording_storage, metrics, other_claims):
        repo = FakeRecordRepository(events, records=[make_record(author_id="dev-user-001")])
        storage = recording_storage()
        orchestrator = LifecycleOrchestrator(repo, storage, FakeAuthorDirectory(), metrics)

        updated = await orchestrator.edit_record(
            "rec-1", ModelRecordUpdate.model_validate({"videoId": "v2.mp4"}), other_claims
        )

        assert updated.video_id == "v2.mp4"
        assert updated.author_id == "dev-user-001"
        assert storage.deleted == ["v1.mp4"]

    @pytest.mark.asyncio
    async def test_edit_reclamation_failure_still_writes(self, events, recording_storage, metrics, author_claims):
        repo = FakeRecordRepository(events, records=[make_record()])
        storage = recording_storage(fail_keys={"old.png"})
        orchestrator = LifecycleOrchestrator(repo, storage, FakeAuthorDirectory(), metrics)

        updated = await orchestrator.edit_record(
            "rec-1", ModelRecordUpdate.model_validate({"imageId": "new.png"}), author_claims
        )

        assert updated.image_id == "new.png"
        assert metrics.get_metrics()["reclamations"]["failed"] == {"edit": 1}

    @pytest.mark.asyncio
    async def test_edit_with_legacy_file_metadata(self, events, recording_storage, metrics, author_claims):
        """Stored file entries with unknown fields are still replaced and reclaimed."""
        record = make_record(model_files=[{"key": "f1", "format": "glb"}])
        repo = FakeRecordRepository(events, records=[record])
        storage = recording_storage(keys=["f1"])
        orchestrator = LifecycleOrchestrator(repo, storage, FakeAuthorDirectory(), metrics)

        updated = await orchestrator.edit_record(
            "rec-1", ModelRecordUpdate.model_validate({"modelFiles": [{"key": "g"}]}), author_claims
        )

        assert storage.deleted == ["f1"]
        assert updated.model_files == [{"key": "g"}]

    @pytest.mark.asyncio
    async def test_record_deleted_before_write(self, events, recording_storage, metrics, author_claims):
        record = make_record()
        repo = FakeRecordRepository(events, records=[record])
        orchestrator = LifecycleOrchestrator(repo, recording_storage(), FakeAuthorDirectory(), metrics)

        async def vanished(record_id, fields):
            return None

        repo.update_by_id = vanished

        with pytest.raises(NotFoundError):
            await orchestrator.edit_record(
                "rec-1", ModelRecordUpdate.model_validate({"title": "Renamed"}), author_claims
            )


class TestDeleteRecord:
    """Deletion is author-only and reclaims before removing metadata."""

    @pytest.mark.asyncio
    async def test_non_author_cannot_delete(self, events, recording_storage, metrics, other_claims):
        record = make_record()
        repo = FakeRecordRepository(events, records=[record])
        storage = recording_storage(keys=record_asset_keys(record))
        orchestrator = LifecycleOrchestrator(repo, storage, FakeAuthorDirectory(), metrics)

        with pytest.raises(AuthorizationError):
            await orchestrator.delete_record("rec-1", other_claims)

        assert events == []
        assert "rec-1" in repo.rows
        assert len(storage.objects) == 4

    @pytest.mark.asyncio
    async def test_author_deletes(self, events, recording_storage, metrics, author_claims):
        record = make_record()
        repo = FakeRecordRepository(events, records=[record])
        storage = recording_storage(keys=record_asset_keys(record))
        orchestrator = LifecycleOrchestrator(repo, storage, FakeAuthorDirectory(), metrics)

        await orchestrator.delete_record("rec-1", author_claims)

        assert events == [
            ("reclaim", "old.png"),
            ("reclaim", "v1.mp4"),
            ("reclaim", "f1"),
            ("reclaim", "f2"),
            ("delete", "rec-1"),
        ]
        assert repo.rows == {}
        assert storage.objects == {}

    @pytest.mark.asyncio
    async def test_shared_key_reclaimed_once(self, events, recording_storage, metrics, author_claims):
        record = make_record(image_id="shared", video_id=None, model_files=[{"key": "shared"}])
        repo = FakeRecordRepository(events, records=[record])
        storage = recording_storage(keys=["shared"])
        orchestrator = LifecycleOrchestrator(repo, storage, FakeAuthorDirectory(), metrics)

        await orchestrator.delete_record("rec-1", author_claims)

        assert storage.deleted == ["shared"]

    @pytest.mark.asyncio
    async def test_delete_continues_past_failed_reclamation(
        self, events, recording_storage, metrics, author_claims
    ):
        record = make_record()
        repo = FakeRecordRepository(events, records=[record])
        storage = recording_storage(keys=record_asset_keys(record), fail_keys={"f1"})
        orchestrator = LifecycleOrchestrator(repo, storage, FakeAuthorDirectory(), metrics)

        await orchestrator.delete_record("rec-1", author_claims)

        assert storage.deleted == ["old.png", "v1.mp4", "f1", "f2"]
        assert repo.rows == {}
        assert set(storage.objects) == {"f1"}

    @pytest.mark.asyncio
    async def test_delete_metadata_failure(self, events, recording_storage, metrics, author_claims):
        """Keys are gone but the record survives, pointing at nothing."""
        record = make_record()
        repo = FakeRecordRepository(events, records=[record], fail_on={"delete"})
        storage = recording_storage(keys=record_asset_keys(record))
        orchestrator = LifecycleOrchestrator(repo, storage, FakeAuthorDirectory(), metrics)

        with pytest.raises(PersistenceError):
            await orchestrator.delete_record("rec-1", author_claims)

        assert "rec-1" in repo.rows
        assert storage.objects == {}

    @pytest.mark.asyncio
    async def test_delete_missing_record(self, events, recording_storage, metrics, author_claims):
        repo = FakeRecordRepository(events)
        orchestrator = LifecycleOrchestrator(repo, recording_storage(), FakeAuthorDirectory(), metrics)

        with pytest.raises(NotFoundError):
            await orchestrator.delete_record("missing", author_claims)

        assert events == []

    @pytest.mark.asyncio
    async def test_anonymous_cannot_delete(self, events, recording_storage, metrics):
        repo = FakeRecordRepository(events, records=[make_record()])
        orchestrator = LifecycleOrchestrator(repo, recording_storage(), FakeAuthorDirectory(), metrics)

        with pytest.raises(AuthorizationError):
            await orchestrator.delete_record("rec-1", {"user_id": None})

        assert events == []


class TestRetrieve:
    """Listing and single-record reads with author projection."""

    @pytest.mark.asyncio
    async def test_retrieve_all_public_newest_first(self, events, recording_storage, metrics):
        now = datetime.now(timezone.utc)
        records = [
            make_record("old", is_public=True, date_created=now - timedelta(days=2)),
            make_record("legacy", is_public=None, date_created=now - timedelta(days=1)),
            make_record("hidden", is_public=False, date_created=now),
            make_record("new", author_id="other-user-002", is_public=True, date_created=now),
        ]
        authors = FakeAuthorDirectory([
            AuthorProjection(id="dev-user-001", username="dev", email="dev@example.org"),
        ])
        orchestrator = LifecycleOrchestrator(
            FakeRecordRepository(events, records=records), recording_storage(), authors, metrics
        )

        views = await orchestrator.retrieve_all(RecordFilter(public_only=True))

        assert [v.record.id for v in views] == ["new", "legacy", "old"]
        assert views[0].author is None
        assert views[1].author.username == "dev"

    @pytest.mark.asyncio
    async def test_retrieve_all_unfiltered(self, events, recording_storage, metrics):
        records = [make_record("a", is_public=False), make_record("b")]
        orchestrator = LifecycleOrchestrator(
            FakeRecordRepository(events, records=records), recording_storage(), FakeAuthorDirectory(), metrics
        )

        views = await orchestrator.retrieve_all(RecordFilter())

        assert {v.record.id for v in views} == {"a", "b"}

    @pytest.mark.asyncio
    async def test_get_record(self, events, recording_storage, metrics):
        authors = FakeAuthorDirectory([AuthorProjection(id="dev-user-001", username="dev")])
        orchestrator = LifecycleOrchestrator(
            FakeRecordRepository(events, records=[make_record()]), recording_storage(), authors, metrics
        )

        view = await orchestrator.get_record("rec-1")

        assert view.record.id == "rec-1"
        assert view.author.id == "dev-user-001"

    @pytest.mark.asyncio
    async def test_get_missing_record(self, events, recording_storage, metrics):
        orchestrator = LifecycleOrchestrator(
            FakeRecordRepository(events), recording_storage(), FakeAuthorDirectory(), metrics
        )

        with pytest.raises(NotFoundError):
            await orchestrator.get_record("missing")
