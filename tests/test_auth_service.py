"""AuthService tests: credential store and session bookkeeping, no HTTP.

Learn-by-example of the revocation model: a session is a row in
user_sessions; issue appends, logout deletes, the guard looks it up.
"""

from datetime import datetime, timedelta, timezone

import pytest

from tasktrack.auth.password import verify_password
from tasktrack.db.models import UserSession
from tasktrack.errors import DuplicateEmail, InvalidCredentials
from tasktrack.services.auth_service import AuthService


@pytest.fixture
def svc(db_session):
    return AuthService(db_session)


@pytest.mark.asyncio
async def test_register_hashes_password(svc):
    user = await svc.register("Hash Test", "hash@example.com", "plain_password")
    assert user.password_hash != "plain_password"
    assert user.password_hash.startswith("$2")
    assert verify_password("plain_password", user.password_hash)
    assert user.role == "user"


@pytest.mark.asyncio
async def test_register_duplicate_email(svc):
    await svc.register("First", "taken@example.com", "password_123")
    with pytest.raises(DuplicateEmail):
        await svc.register("Second", "TAKEN@example.com", "password_456")


@pytest.mark.asyncio
async def test_register_race_on_unique_email(db_session, monkeypatch):
    """Two registrations pass the lookup; the unique index decides at commit."""
    await AuthService(db_session).register("First", "race@example.com", "password_123")

    racing = AuthService(db_session)

    async def not_found_yet(email):
        return None

    monkeypatch.setattr(racing, "get_by_email", not_found_yet)
    with pytest.raises(DuplicateEmail):
        await racing.register("Second", "race@example.com", "password_456")

    # Rolled back cleanly; the session keeps working
    svc = AuthService(db_session)
    other = await svc.register("Third", "after-race@example.com", "password_789")
    assert other.email == "after-race@example.com"
    first = await svc.get_by_email("race@example.com")
    assert first.name == "First"


@pytest.mark.asyncio
async def test_set_password_rehashes(svc):
    user = await svc.register("Rehash", "rehash@example.com", "old_password")
    old_hash = user.password_hash

    user.set_password("new_password")
    assert user.password_hash != old_hash
    assert verify_password("new_password", user.password_hash)
    assert not verify_password("old_password", user.password_hash)


@pytest.mark.asyncio
async def test_same_password_gets_different_salts(svc):
    a = await svc.register("Salt A", "salt-a@example.com", "same_password")
    b = await svc.register("Salt B", "salt-b@example.com", "same_password")
    assert a.password_hash != b.password_hash


@pytest.mark.asyncio
async def test_authenticate(svc):
    await svc.register("Auth", "auth@example.com", "password_123")

    user = await svc.authenticate("Auth@Example.com", "password_123")
    assert user.email == "auth@example.com"

    with pytest.raises(InvalidCredentials):
        await svc.authenticate("auth@example.com", "wrong")
    with pytest.raises(InvalidCredentials):
        await svc.authenticate("ghost@example.com", "password_123")


@pytest.mark.asyncio
async def test_issue_token_records_sessions_in_order(svc):
    user = await svc.register("Multi", "multi@example.com", "password_123")

    t1 = await svc.issue_token(user)
    t2 = await svc.issue_token(user)
    assert t1 != t2

    sessions = await svc.active_sessions(user.id)
    assert [s.token for s in sessions] == [t1, t2]
    assert await svc.resolve_session(user.id, t1) is not None
    assert await svc.resolve_session(user.id, t2) is not None


@pytest.mark.asyncio
async def test_logout_removes_exactly_one_session(svc):
    user = await svc.register("Logout", "logout@example.com", "password_123")
    t1 = await svc.issue_token(user)
    t2 = await svc.issue_token(user)

    await svc.logout(user.id, t1)

    assert await svc.resolve_session(user.id, t1) is None
    assert await svc.resolve_session(user.id, t2) is not None


@pytest.mark.asyncio
async def test_logout_unknown_token_is_noop(svc):
    user = await svc.register("Noop", "noop@example.com", "password_123")
    token = await svc.issue_token(user)

    await svc.logout(user.id, "never-issued")
    await svc.logout(user.id, token)
    await svc.logout(user.id, token)

    assert await svc.active_sessions(user.id) == []


@pytest.mark.asyncio
async def test_session_is_bound_to_its_user(svc):
    alice = await svc.register("Alice", "alice@example.com", "password_123")
    bob = await svc.register("Bob", "bob@example.com", "password_123")
    token = await svc.issue_token(alice)

    assert await svc.resolve_session(bob.id, token) is None


@pytest.mark.asyncio
async def test_logout_all(svc):
    user = await svc.register("All", "all@example.com", "password_123")
    await svc.issue_token(user)
    await svc.issue_token(user)

    assert await svc.logout_all(user.id) == 2
    assert await svc.active_sessions(user.id) == []


@pytest.mark.asyncio
async def test_prune_expired_sessions(svc, db_session):
    user = await svc.register("Prune", "prune@example.com", "password_123")
    live = await svc.issue_token(user)
    db_session.add(
        UserSession(
            user_id=user.id,
            token="stale-token",
            expires_at=datetime.now(timezone.utc) - timedelta(days=1),
        )
    )
    await db_session.commit()

    assert await svc.prune_expired_sessions() == 1
    assert [s.token for s in await svc.active_sessions(user.id)] == [live]


@pytest.mark.asyncio
async def test_issue_token_drops_own_expired_sessions(svc, db_session):
    user = await svc.register("Tidy", "tidy@example.com", "password_123")
    db_session.add(
        UserSession(
            user_id=user.id,
            token="stale-token",
            expires_at=datetime.now(timezone.utc) - timedelta(seconds=1),
        )
    )
    await db_session.commit()

    fresh = await svc.issue_token(user)
    assert [s.token for s in await svc.active_sessions(user.id)] == [fresh]
