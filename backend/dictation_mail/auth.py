"""
Authentication dependency for Supabase JWT verification.

Performance notes:
- get_current_user verifies JWTs locally with python-jose when SUPABASE_JWT_SECRET
  is set, avoiding a network round-trip to the Supabase Auth API.
- Without the secret it falls back to supabase.auth.get_user().
"""

import logging
import re
from typing import Optional

from fastapi import Depends, Header

from dictation_mail.clients import get_supabase
from dictation_mail.config import Settings, get_settings
from dictation_mail.errors import Unauthorized

logger = logging.getLogger(__name__)

_BEARER_RE = re.compile(r"^\s*Bearer\s+(\S+)\s*$", re.IGNORECASE)
_BARE_JWT_RE = re.compile(r"^\s*([A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+)\s*$")


def extract_bearer_token(*candidates: Optional[str]) -> Optional[str]:
    """
    Return the token from the first usable header value.

    Accepts ``Bearer <token>`` (any case) or a bare three-segment JWT.
    """
    for raw in candidates:
        if not raw:
            continue
        match = _BEARER_RE.match(raw) or _BARE_JWT_RE.match(raw)
        if match:
            return match.group(1)
    return None


async def get_current_user(
    authorization: Optional[str] = Header(None),
    x_authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Extract and verify the JWT from the Authorization (or X-Authorization) header.

    Returns:
        user_id: Authenticated user's ID (the JWT ``sub`` claim)

    Raises:
        Unauthorized: token is missing, invalid, or expired
    """
    if not authorization and not x_authorization:
        raise Unauthorized("Missing bearer token")

    token = extract_bearer_token(authorization, x_authorization)
    if not token:
        raise Unauthorized("Invalid authentication credentials")

    if settings.supabase_jwt_secret:
        return _verify_jwt_locally(token, settings.supabase_jwt_secret)

    return await _verify_jwt_remotely(token)


def _verify_jwt_locally(token: str, secret: str) -> str:
    """
    Verify a Supabase JWT locally using python-jose and return the user ID.

    Supabase issues HS256 JWTs signed with the project's JWT secret.

    Raises:
        Unauthorized on any verification failure.
    """
    from jose import ExpiredSignatureError, JWTError, jwt

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            options={"verify_aud": False},  # Supabase JWTs use 'authenticated' role, not a fixed audience
        )
    except ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except JWTError:
        raise Unauthorized("Invalid token")

    user_id: Optional[str] = payload.get("sub")
    if not user_id:
        raise Unauthorized("Invalid token")

    return user_id


async def _verify_jwt_remotely(token: str) -> str:
    """
    Verify a JWT via the Supabase Auth API (fallback when no JWT secret is set).

    Raises:
        Unauthorized on any verification failure.
    """
    client = get_supabase()
    try:
        response = client.auth.get_user(token)
    except Exception as e:
        logger.warning(f"Auth: get_user failed: {e}")
        if "expired" in str(e).lower():
            raise Unauthorized("Token expired")
        raise Unauthorized("Invalid or expired token")

    if not response or not response.user:
        raise Unauthorized("Invalid token")

    return response.user.id
