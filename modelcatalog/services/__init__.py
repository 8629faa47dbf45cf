"""
Business logic services for the 3D Model Catalog.
Services handle core operations separate from API endpoints.
"""

from modelcatalog.services.asset_diff import AssetDiff, diff_asset_references
from modelcatalog.services.author_directory import AuthorDirectory
from modelcatalog.services.lifecycle import LifecycleOrchestrator, RecordView
from modelcatalog.services.record_repository import ModelRecordRepository

__all__ = [
    "AssetDiff",
    "AuthorDirectory",
    "LifecycleOrchestrator",
    "ModelRecordRepository",
    "RecordView",
    "diff_asset_references",
]
