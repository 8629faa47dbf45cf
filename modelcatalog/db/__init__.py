"""Metadata store (SQL database) module for the 3D Model Catalog."""

from modelcatalog.db.base import Base
from modelcatalog.db.session import get_db, engine, AsyncSessionLocal

__all__ = ["Base", "get_db", "engine", "AsyncSessionLocal"]
