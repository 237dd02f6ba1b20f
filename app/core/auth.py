"""Optional caller identity from a bearer token.

Search is public; a valid token only attaches a user id to analytics events.
"""

from __future__ import annotations

import logging
from typing import Optional

import jwt
from fastapi import Header
from jwt import InvalidTokenError

from app.core.settings import settings

logger = logging.getLogger(__name__)


def decode_user_id(token: str) -> Optional[str]:
    if not settings.supabase_jwt_secret:
        return None
    try:
        payload = jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=["HS256"],
            audience=settings.jwt_audience,
            leeway=5,
        )
    except InvalidTokenError as e:
        logger.debug(f"Ignoring invalid bearer token: {e}")
        return None
    sub = payload.get("sub")
    return str(sub) if sub else None


async def get_optional_user_id(
    authorization: Optional[str] = Header(default=None),
) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return decode_user_id(token.strip())
