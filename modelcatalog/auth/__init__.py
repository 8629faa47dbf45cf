"""
Authentication and authorization for the 3D Model Catalog.
"""

from modelcatalog.auth.jwt import validate_token, extract_user_claims, fetch_jwks, check_scope
from modelcatalog.auth.permissions import check_record_ownership
from modelcatalog.auth.dependencies import (
    get_current_user,
    require_scope,
    CurrentUser,
    RequireRead,
    RequireWrite,
)

__all__ = [
    # JWT functions
    "validate_token",
    "extract_user_claims",
    "fetch_jwks",
    "check_scope",
    # Ownership gate
    "check_record_ownership",
    # Dependencies
    "get_current_user",
    "require_scope",
    # Type aliases
    "CurrentUser",
    "RequireRead",
    "RequireWrite",
]
