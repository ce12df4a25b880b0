"""
auth/tokens.py -- Password hashing and the access-token lifecycle.

Security design decisions:
  Passwords: bcrypt, used directly (no passlib wrapper). The _DUMMY_HASH
       constant enables timing equalization in authenticate_user() so response
       time does not reveal whether an email is registered.

  Access tokens: opaque bearer strings of the form "<id>|<secret>", where
       secret is secrets.token_hex(32) (256 bits of entropy). Only
       HMAC-SHA256(SECRET_KEY, secret) is persisted, so a leaked database does
       not yield usable tokens. The plaintext is returned once by issue_token()
       and cannot be recovered afterwards.

  Lookup: when the presented value carries the "<id>|" prefix, the row is
       fetched by id and the hash compared with hmac.compare_digest. A bare
       value (no "|") is hashed and looked up by hash directly. Clients never
       need to know about either form.

  Revocation: logout deletes every token the user holds. There is no expiry.

Layer rule: no imports from api/ or employees/. Import from core/ is allowed --
core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from typing import TYPE_CHECKING

import bcrypt

from auth.models import AccessToken
from core.config import get_settings
from core.exceptions import Unauthenticated

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("staffledger.auth")

_settings = get_settings()

TOKEN_NAME = "api_token"

_MAX_ID_DIGITS = 18

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt rejects input longer than 72 bytes. RegisterRequest caps the UTF-8
    length of a new password at 72 bytes so this never sees a longer one.
    """
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("staffledger_timing_dummy")


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Check an email/password pair with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure.
    """
    user = store.get_by_email(email)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# ---------------------------------------------------------------------------
# Token secrets
# ---------------------------------------------------------------------------


def generate_token_secret() -> str:
    """Return 32 random bytes as 64 hex characters."""
    return secrets.token_hex(32)


def hash_token(secret: str) -> str:
    """Return HMAC-SHA256(SECRET_KEY, secret) as a hex string."""
    return hmac.new(
        _settings.secret_key.encode(),
        secret.encode(),
        hashlib.sha256,
    ).hexdigest()


# ---------------------------------------------------------------------------
# Token service
# ---------------------------------------------------------------------------


def issue_token(store: UserStore, user: User, name: str = TOKEN_NAME) -> tuple[int, str]:
    """Create a token bound to user and return (token_id, plaintext).

    The plaintext is the only copy of the secret -- hand it to the client and
    forget it.
    """
    secret = generate_token_secret()
    token_id = store.create_token(AccessToken(user_id=user.id, name=name, token_hash=hash_token(secret)))
    logger.info("Issued token %d for user %d", token_id, user.id)
    return token_id, f"{token_id}|{secret}"


def _find_token(store: UserStore, presented: str) -> AccessToken | None:
    if "|" not in presented:
        return store.get_token_by_hash(hash_token(presented))

    token_id, _, secret = presented.partition("|")
    # ASCII digits only, and short enough to fit a 64-bit INTEGER column.
    if not (token_id.isascii() and token_id.isdigit()) or len(token_id) > _MAX_ID_DIGITS or not secret:
        return None
    token = store.get_token(int(token_id))
    if token is None or not hmac.compare_digest(token.token_hash, hash_token(secret)):
        return None
    return token


def validate_token(store: UserStore, presented: str | None) -> User:
    """Resolve a presented bearer value to its owning User.

    Raises Unauthenticated when the value is empty, unknown, or belongs to a
    user that no longer exists. A successful validation stamps last_used_at.
    """
    if not presented:
        raise Unauthenticated()
    token = _find_token(store, presented)
    if token is None:
        raise Unauthenticated()
    user = store.get_by_id(token.user_id)
    if user is None:
        raise Unauthenticated()
    store.touch_token(token.id)
    return user


def revoke_all_tokens(store: UserStore, user: User) -> int:
    """Delete every token owned by user. Idempotent; returns the count removed."""
    removed = store.delete_tokens_for_user(user.id)
    logger.info("Revoked %d token(s) for user %d", removed, user.id)
    return removed
