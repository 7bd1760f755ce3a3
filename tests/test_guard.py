"""Access guard tests: get_current_user called directly, no HTTP.

Covers the cases that are awkward to reach through the API: expired
tokens that are still listed, tokens for users that no longer exist,
and tokens with a non-UUID subject.
"""

import uuid

import jwt
import pytest

from tasktrack.auth.dependencies import extract_bearer_token, get_current_user
from tasktrack.auth.jwt import create_session_token
from tasktrack.config import settings
from tasktrack.db.models import UserSession
from tasktrack.errors import Unauthenticated
from tasktrack.services.auth_service import AuthService


@pytest.mark.parametrize(
    "header, expected",
    [
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        ("bearer abc", "abc"),
        ("Bearer   abc  ", "abc"),
        ("Bearer", None),
        ("Token abc", None),
        ("", None),
        (None, None),
    ],
)
def test_extract_bearer_token(header, expected):
    assert extract_bearer_token(header) == expected


@pytest.mark.asyncio
async def test_guard_accepts_live_session(db_session):
    svc = AuthService(db_session)
    user = await svc.register("Live", "live@example.com", "password_123")
    token = await svc.issue_token(user)

    identity = await get_current_user(authorization=f"Bearer {token}", db=db_session)
    assert identity.user_id == user.id
    assert identity.token == token


@pytest.mark.asyncio
async def test_guard_rejects_expired_but_listed_token(db_session):
    svc = AuthService(db_session)
    user = await svc.register("Expired", "expired@example.com", "password_123")
    token, expires_at = create_session_token(
        str(user.id), user.email, user.role, expires_days=-1
    )
    db_session.add(UserSession(user_id=user.id, token=token, expires_at=expires_at))
    await db_session.commit()

    with pytest.raises(Unauthenticated):
        await get_current_user(authorization=f"Bearer {token}", db=db_session)


@pytest.mark.asyncio
async def test_guard_rejects_signed_but_unlisted_token(db_session):
    svc = AuthService(db_session)
    user = await svc.register("Unlisted", "unlisted@example.com", "password_123")
    token, _ = create_session_token(str(user.id), user.email, user.role)

    with pytest.raises(Unauthenticated):
        await get_current_user(authorization=f"Bearer {token}", db=db_session)


@pytest.mark.asyncio
async def test_guard_rejects_unknown_user(db_session):
    token, _ = create_session_token(str(uuid.uuid4()), "ghost@example.com", "user")
    with pytest.raises(Unauthenticated):
        await get_current_user(authorization=f"Bearer {token}", db=db_session)


@pytest.mark.asyncio
async def test_guard_rejects_non_uuid_subject(db_session):
    token = jwt.encode(
        {"sub": "not-a-uuid", "iat": 1, "exp": 4102444800},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(Unauthenticated):
        await get_current_user(authorization=f"Bearer {token}", db=db_session)


@pytest.mark.asyncio
async def test_guard_requires_header(db_session):
    with pytest.raises(Unauthenticated) as exc:
        await get_current_user(authorization=None, db=db_session)
    assert exc.value.message == "No token, authorization denied"
