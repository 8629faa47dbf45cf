"""
Record-level ownership checks.
"""

from typing import Any

from modelcatalog.core.exceptions import AuthorizationError


def check_record_ownership(record: Any, user_claims: dict[str, Any]) -> bool:
    """
    Confirm the acting identity is the record's author.

    Compares the opaque identity id only; name, email and other derived
    attributes are never used. Applied on delete. Edits are not gated.

    Args:
        record: Model record (anything with id and author_id)
        user_claims: User claims from the identity token

    Returns:
        True if the identity owns the record

    Raises:
        AuthorizationError: If the identities differ or the caller has no id
    """
    user_id = user_claims.get("user_id")

    if user_id is not None and record.author_id == user_id:
        return True

    raise AuthorizationError(
        message="Not authorized",
        details={
            "record_id": record.id,
            "required": "ownership",
        },
    )
