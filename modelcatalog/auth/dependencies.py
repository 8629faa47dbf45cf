"""
Authentication dependencies for FastAPI.
Supplies the acting identity to mutating endpoints.
"""

from typing import Annotated, Any

from fastapi import Depends, Header, Request

from modelcatalog.config import get_settings
from modelcatalog.core.exceptions import UnauthorizedException
from modelcatalog.auth.jwt import validate_token, extract_user_claims, check_scope

settings = get_settings()


def _dev_user_claims() -> dict[str, Any]:
    return {
        "user_id": settings.DEV_USER_ID,
        "name": settings.DEV_USER_NAME,
        "email": settings.DEV_USER_EMAIL,
        "institution": None,
        "roles": ["author"],
        "scopes": ["models:read", "models:write"],
    }


async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> dict[str, Any]:
    """
    Dependency to get current authenticated user.

    In development mode (DEV_MODE=true), returns a fixed identity.
    Otherwise validates the bearer token from the Authorization header.

    Raises:
        UnauthorizedException: If authentication fails
    """
    if settings.DEV_MODE:
        user_claims = _dev_user_claims()
        request.state.user = user_claims
        return user_claims

    if not authorization:
        raise UnauthorizedException("Authorization header required")

    # Extract token from "Bearer <token>" format
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise UnauthorizedException("Invalid authorization header format")

    payload = await validate_token(parts[1])
    user_claims = extract_user_claims(payload)

    if not user_claims["user_id"]:
        raise UnauthorizedException("Token missing subject")

    request.state.user = user_claims
    return user_claims


def require_scope(required_scope: str):
    """
    Dependency factory to require a specific scope.

    Usage:
        @router.post("")
        async def create_model(user: dict = Depends(require_scope("models:write"))):
            ...
    """
    async def _check_scope(
        user: dict[str, Any] = Depends(get_current_user),
    ) -> dict[str, Any]:
        if not check_scope(user, required_scope):
            raise UnauthorizedException(
                f"Required scope '{required_scope}' not present in token"
            )
        return user

    return _check_scope


# Type aliases for dependency injection
CurrentUser = Annotated[dict[str, Any], Depends(get_current_user)]
RequireRead = Annotated[dict[str, Any], Depends(require_scope("models:read"))]
RequireWrite = Annotated[dict[str, Any], Depends(require_scope("models:write"))]
