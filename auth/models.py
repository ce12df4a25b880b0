"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in employees/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/ or employees/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered API user.

    email is the login identifier and is unique across users.
    hashed_password is a bcrypt hash; it is never serialized into a response
    (see api.models.UserOut).
    """

    name: str
    email: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class AccessToken:
    """A bearer credential issued on register or login.

    Security design:
    - token_hash is HMAC-SHA256(SECRET_KEY, secret). The deterministic hash
      lets the store look tokens up by value without keeping the secret.
    - The plaintext "<id>|<secret>" is returned ONCE at issuance and is
      unrecoverable afterwards.
    - Tokens have no expiry. They live until the owner logs out, which
      deletes every token the user holds.
    """

    user_id: int
    name: str
    token_hash: str  # HMAC-SHA256 of the secret part
    id: int | None = None
    created_at: str | None = None
    last_used_at: str | None = None
