"""
FastAPI dependency injection functions.
Assembles the per-request services from the shared store handles.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from modelcatalog.config import Settings, get_settings
from modelcatalog.db.session import get_db
from modelcatalog.services.author_directory import AuthorDirectory
from modelcatalog.services.lifecycle import LifecycleOrchestrator
from modelcatalog.services.record_repository import ModelRecordRepository
from modelcatalog.storage import StorageBackend, get_storage


# Type aliases for cleaner endpoint signatures
DbSession = Annotated[AsyncSession, Depends(get_db)]
Storage = Annotated[StorageBackend, Depends(get_storage)]
AppSettings = Annotated[Settings, Depends(get_settings)]


def get_orchestrator(db: DbSession, storage: Storage) -> LifecycleOrchestrator:
    """Build a lifecycle orchestrator over this request's session."""
    return LifecycleOrchestrator(
        records=ModelRecordRepository(db),
        storage=storage,
        authors=AuthorDirectory(db),
    )


Orchestrator = Annotated[LifecycleOrchestrator, Depends(get_orchestrator)]
