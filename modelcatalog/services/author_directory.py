"""
Author directory - read-time author projection for model records.
"""

from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from modelcatalog.models.user import User
from modelcatalog.schemas.model_record import AuthorProjection
from modelcatalog.services.record_repository import persistence_errors


class AuthorDirectory:
    """Looks up authors by identity id, exposing only id, username and email."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def project(self, author_ids: Iterable[str]) -> dict[str, AuthorProjection]:
        """
        Get author projections for a set of identity ids.

        Ids with no matching user are absent from the result.
        """
        ids = set(author_ids)
        if not ids:
            return {}

        # Select only the projected columns; nothing else leaves the users table
        query = select(User.id, User.username, User.email).where(User.id.in_(ids))

        async with persistence_errors(self.db, "find"):
            result = await self.db.execute(query)
            rows = result.all()

        return {
            row.id: AuthorProjection(id=row.id, username=row.username, email=row.email)
            for row in rows
        }

    async def ensure(self, user_claims: dict[str, Any]) -> None:
        """
        Stage the acting identity in the users table.

        Nothing is committed here; the next record insert commits the user
        row in the same transaction.
        """
        user_id = user_claims["user_id"]

        async with persistence_errors(self.db, "find"):
            user = await self.db.get(User, user_id)

        username = user_claims.get("name") or user_id
        email = user_claims.get("email")

        if user is None:
            self.db.add(
                User(
                    id=user_id,
                    username=username,
                    email=email,
                    institution=user_claims.get("institution"),
                    roles=user_claims.get("roles") or None,
                )
            )
            return

        if user.username != username or user.email != email:
            user.username = username
            user.email = email
