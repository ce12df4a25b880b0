"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The guard reads "Authorization: Bearer <token>", resolves it to a User via
the token service, and short-circuits with 401 before any protected handler
runs. The resolved User is cached on request.state so handlers that need it
(logout, /user) and router-level dependencies resolve the token only once.

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises Unauthenticated if there is no user.

Layer rule: no imports from api/ or employees/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import User
from auth.tokens import validate_token
from core.exceptions import Unauthenticated


def _bearer_value(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, value = auth_header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return value.strip() or None


def try_get_current_user(request: Request) -> User | None:
    """Attempt to authenticate the request via its Bearer header.

    Returns the authenticated User on success, None on any failure.
    Never raises -- callers that need a hard 401 should use get_current_user().
    """
    cached = getattr(request.state, "user", None)
    if cached is not None:
        return cached
    token = _bearer_value(request)
    if token is None:
        return None
    try:
        user = validate_token(request.app.state.user_store, token)
    except Unauthenticated:
        return None
    request.state.user = user
    return user


def get_current_user(request: Request) -> User:
    """Require authentication. Raises Unauthenticated (401) if not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise Unauthenticated()
    return user
