"""SQLAlchemy declarative base for catalog tables."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for the users and model_records tables."""
    pass
