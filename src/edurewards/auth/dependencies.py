"""FastAPI authentication dependencies."""

from __future__ import annotations

from typing import Any

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from edurewards.auth.jwt import verify_token
from edurewards.config import get_settings
from edurewards.database import get_session
from edurewards.db.models import User
from edurewards.users.service import get_or_create_user

_bearer = HTTPBearer()


async def get_token_claims(
    credentials: HTTPAuthorizationCredentials = Security(_bearer),
) -> dict[str, Any]:
    """Verify the bearer token and return its claims. Raises 401 on failure."""
    try:
        return verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e


async def get_current_user(
    claims: dict[str, Any] = Depends(get_token_claims),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Return the User for the token's uid.

    The first authenticated request provisions the user row.
    """
    user, _ = await get_or_create_user(
        db,
        claims["sub"],
        display_name=claims.get("name"),
        email=claims.get("email"),
    )
    return user


async def require_admin(
    claims: dict[str, Any] = Depends(get_token_claims),
) -> dict[str, Any]:
    """Allow only tokens whose role claim matches the configured admin role."""
    if claims.get("role") != get_settings().admin_role:
        raise HTTPException(status_code=403, detail="Admin access required")
    return claims
