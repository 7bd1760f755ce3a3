"""FastAPI auth dependencies: the access guard for protected routes.

Used as Depends() in route handlers (or at include_router level) to turn
the Authorization header into a CurrentIdentity, or reject with 401.

Steps:
1. Extract the bearer token (missing → 401)
2. Verify signature + expiry (invalid → 401)
3. Load the user AND require the exact token in their live sessions
   (logged out / unknown user → 401)
"""

import uuid
from typing import Optional

import structlog
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrack.auth.jwt import InvalidToken, verify_token
from tasktrack.db.engine import get_db
from tasktrack.db.models import User
from tasktrack.errors import Unauthenticated
from tasktrack.services.auth_service import AuthService

logger = structlog.get_logger()


class CurrentIdentity:
    """The authenticated user making the request, and the token they used.

    The token is kept so logout can revoke exactly this session.
    """

    def __init__(self, user: User, token: str):
        self.user = user
        self.token = token

    @property
    def user_id(self) -> uuid.UUID:
        return self.user.id


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from "Bearer <token>", or None if absent/malformed."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


async def get_current_user(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> CurrentIdentity:
    """Resolve the request's bearer token to a live session (required)."""
    token = extract_bearer_token(authorization)
    if not token:
        raise Unauthenticated("No token, authorization denied")

    try:
        claims = verify_token(token)
        user_id = uuid.UUID(str(claims["sub"]))
    except (InvalidToken, ValueError):
        raise Unauthenticated() from None

    user = await AuthService(db).resolve_session(user_id, token)
    if user is None:
        logger.info("auth.session_rejected", user_id=str(user_id))
        raise Unauthenticated()

    structlog.contextvars.bind_contextvars(user_id=str(user.id))
    return CurrentIdentity(user=user, token=token)
