"""Auth service: accounts, credentials, and session bookkeeping.

Service layer separates business logic from HTTP routing.
Routes call services, services call the database.

Sessions:
- issue_token() signs a JWT and records it in user_sessions
- resolve_session() is the revocation check used by the access guard
- logout() deletes exactly one session row; other devices stay logged in

The session append is committed on its own; it is never part of the
same transaction as any task write.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrack.auth.jwt import create_session_token
from tasktrack.auth.password import burn_verify, verify_password
from tasktrack.db.models import User, UserSession
from tasktrack.errors import DuplicateEmail, InvalidCredentials

logger = structlog.get_logger()


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """Business logic for registration, login and session lifecycle."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Accounts ───────────────────────────────────────

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalars().first()

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: str = "user",
    ) -> User:
        """Create a new account. Raises DuplicateEmail if the email is taken."""
        if await self.get_by_email(email):
            raise DuplicateEmail()

        user = User(name=name, email=email, role=role)
        user.set_password(password)
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email.
            await self.db.rollback()
            raise DuplicateEmail() from None

        logger.info("auth.registered", user_id=str(user.id))
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Check email + password. Same failure for unknown email or bad password."""
        user = await self.get_by_email(email)
        if user is None:
            burn_verify(password)
            logger.info("auth.login_failed")
            raise InvalidCredentials()

        if not verify_password(password, user.password_hash):
            logger.info("auth.login_failed", user_id=str(user.id))
            raise InvalidCredentials()

        return user

    # ─── Sessions ───────────────────────────────────────

    async def issue_token(self, user: User) -> str:
        """Sign a session token for the user and record it as live.

        Expired sessions of the same user are dropped in the same commit.
        """
        token, expires_at = create_session_token(
            user_id=str(user.id),
            email=user.email,
            role=user.role,
        )
        await self.db.execute(
            delete(UserSession).where(
                UserSession.user_id == user.id,
                UserSession.expires_at <= datetime.now(timezone.utc),
            )
        )
        self.db.add(UserSession(user_id=user.id, token=token, expires_at=expires_at))
        await self.db.commit()

        logger.info("auth.session_issued", user_id=str(user.id))
        return token

    async def resolve_session(self, user_id: uuid.UUID, token: str) -> Optional[User]:
        """Return the user only if this exact token is one of their live sessions."""
        result = await self.db.execute(
            select(User)
            .join(UserSession, UserSession.user_id == User.id)
            .where(User.id == user_id, UserSession.token == token)
        )
        return result.scalars().first()

    async def active_sessions(self, user_id: uuid.UUID) -> list[UserSession]:
        """The user's recorded sessions, oldest first."""
        result = await self.db.execute(
            select(UserSession)
            .where(UserSession.user_id == user_id)
            .order_by(UserSession.created_at, UserSession.id)
        )
        return list(result.scalars().all())

    async def logout(self, user_id: uuid.UUID, token: str) -> None:
        """Revoke one session. Revoking an unknown token is a no-op."""
        await self.db.execute(
            delete(UserSession).where(
                UserSession.user_id == user_id,
                UserSession.token == token,
            )
        )
        await self.db.commit()
        logger.info("auth.logged_out", user_id=str(user_id))

    async def logout_all(self, user_id: uuid.UUID) -> int:
        """Revoke every session of the user. Returns how many were removed."""
        result = await self.db.execute(
            delete(UserSession).where(UserSession.user_id == user_id)
        )
        await self.db.commit()
        logger.info("auth.logged_out_all", user_id=str(user_id), sessions=result.rowcount)
        return result.rowcount

    async def prune_expired_sessions(self) -> int:
        """Delete every session row past its expiry, across all users."""
        result = await self.db.execute(
            delete(UserSession).where(
                UserSession.expires_at <= datetime.now(timezone.utc)
            )
        )
        await self.db.commit()
        logger.info("auth.sessions_pruned", count=result.rowcount)
        return result.rowcount
