"""Password hashing utilities.

Uses bcrypt for secure password hashing. bcrypt generates a random salt
per hash and embeds it in the output ("$2b$<rounds>$<salt><hash>"), so
verification needs nothing but the stored string.
The work factor comes from settings.bcrypt_rounds (12 by default).
"""

from functools import lru_cache

import bcrypt

from tasktrack.config import settings

# bcrypt only looks at the first 72 bytes.
_MAX_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a password with bcrypt and a fresh random salt."""
    pw_bytes = password.encode("utf-8")[:_MAX_BYTES]
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a candidate password against a stored bcrypt hash."""
    try:
        pw_bytes = password.encode("utf-8")[:_MAX_BYTES]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError):
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("tasktrack-dummy-password")


def burn_verify(password: str) -> None:
    """Spend the same bcrypt time as a real check, for unknown accounts.

    Keeps login latency the same whether or not the email exists.
    """
    verify_password(password, _dummy_hash())
