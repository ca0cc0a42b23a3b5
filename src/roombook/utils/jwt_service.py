import logging
import os
from typing import Optional

import jwt

from roombook.utils.custom_exceptions import AuthError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def authenticate(
    token: Optional[str],
    secret: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> str:
    """Verify a bearer token and return the user id it was issued for.

    Holds no state: the secret and algorithm are read per call (falling back
    to ``JWT_SECRET`` / ``JWT_ALGORITHM``) so callers can inject their own.
    Raises ``AuthError`` for a missing, expired or malformed token.
    """
    secret = secret or os.environ.get("JWT_SECRET")
    algorithm = algorithm or os.environ.get("JWT_ALGORITHM", "HS256")
    if not secret:
        raise AuthError("JWT_SECRET is not configured")

    if not token:
        raise AuthError("Missing Authorization header")

    if token.startswith(BEARER_PREFIX):
        token = token[len(BEARER_PREFIX):]

    try:
        decoded = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError as err:
        raise AuthError("Token expired") from err
    except jwt.InvalidTokenError as err:
        raise AuthError(f"Invalid token: {err}") from err

    user_id = decoded.get("user_id") or decoded.get("userId")
    if not user_id:
        raise AuthError("Missing user_id in token")
    return str(user_id)
