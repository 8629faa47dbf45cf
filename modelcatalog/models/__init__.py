"""
SQLAlchemy ORM models for the 3D Model Catalog.
"""

from modelcatalog.models.model_record import ModelRecord
from modelcatalog.models.user import User

__all__ = [
    "ModelRecord",
    "User",
]
