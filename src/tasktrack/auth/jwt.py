"""Session token signing and verification.

A session token is an HS256 JWT carrying the user's id, email and role,
issued-at and expiry (settings.session_expire_days, 7 by default), plus a
random jti so two logins in the same second still get distinct tokens.

A valid signature is necessary but not sufficient: the access guard also
requires the token to be listed in the user's live sessions.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from tasktrack.config import settings


class InvalidToken(Exception):
    """Raised for any token that fails verification.

    Deliberately carries no detail about which check failed.
    """

    def __init__(self):
        super().__init__("Token is not valid")


def create_session_token(
    user_id: str,
    email: str,
    role: str,
    expires_days: Optional[int] = None,
) -> tuple[str, datetime]:
    """Sign a new session token. Returns (token, expires_at)."""
    if expires_days is None:
        expires_days = settings.session_expire_days
    issued_at = datetime.now(timezone.utc)
    expires_at = issued_at + timedelta(days=expires_days)
    payload = {
        "sub": user_id,
        "email": email,
        "role": role,
        "iat": issued_at,
        "exp": expires_at,
        "jti": uuid.uuid4().hex,
    }
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, expires_at


def verify_token(token: str) -> dict:
    """Verify signature and expiry, returning the claims.

    Raises InvalidToken on malformed input, bad signature, expiry,
    or missing claims.
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp", "iat"]},
        )
    except jwt.PyJWTError:
        raise InvalidToken() from None
