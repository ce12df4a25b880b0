"""
api/routes/auth.py -- Registration, login, and logout endpoints.

Routes:
  POST /register   -- create a user; returns the user and a fresh token (201)
  POST /login      -- email/password login; returns the user and a new token
  POST /logout     -- revoke every token the caller holds (requires auth)
  GET  /user       -- current user info (requires auth)

Security:
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_email() + verify_password().
  Login failures return one generic "invalid credentials" message so the
  response does not reveal whether the email is registered.
  Cache-Control: no-store on every response that carries a token.
  Passwords and tokens are never logged.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import IntegrityError

from api.models import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserOut,
    UserResponse,
)
from auth.dependencies import get_current_user
from auth.models import User
from auth.store import UserStore
from auth.tokens import authenticate_user, hash_password, issue_token, revoke_all_tokens
from core.config import get_settings
from core.exceptions import InternalError, Unauthenticated, ValidationError

logger = logging.getLogger("staffledger.auth")

EMAIL_TAKEN = "The email has already been taken."
PASSWORD_MISMATCH = "The password field confirmation does not match."

# Auth policy:
# - POST /register: public
# - POST /login:    public
# - POST /logout:   requires auth (get_current_user)
# - GET  /user:     requires auth (get_current_user)
router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(request: Request, response: Response, body: RegisterRequest) -> AuthResponse:
    """Create a user account and issue its first token.

    Format rules are enforced by RegisterRequest. The checks that need
    settings or the database (password length, confirmation, unique email) are
    collected here so the client gets every field error in one response.
    """
    user_store: UserStore = request.app.state.user_store
    settings = get_settings()

    errors: dict[str, list[str]] = {}
    if len(body.password) < settings.min_password_length:
        errors.setdefault("password", []).append(
            f"The password field must be at least {settings.min_password_length} characters."
        )
    if body.password != body.password_confirmation:
        errors.setdefault("password", []).append(PASSWORD_MISMATCH)
    if user_store.email_exists(body.email):
        errors["email"] = [EMAIL_TAKEN]
    if errors:
        raise ValidationError(errors)

    new_user = User(name=body.name, email=body.email, hashed_password=hash_password(body.password))
    try:
        user_id = user_store.create_user(new_user)
    except IntegrityError as exc:
        # A concurrent registration claimed the email between check and insert.
        raise ValidationError({"email": [EMAIL_TAKEN]}) from exc

    user = _load_user(user_store, user_id)
    _, token = issue_token(user_store, user)
    logger.info("Registered user %d", user.id)

    response.headers["Cache-Control"] = "no-store"
    return AuthResponse(message="user registered", user=UserOut.from_user(user), token=token, status=201)


@router.post("/login", response_model=AuthResponse)
def login(request: Request, response: Response, body: LoginRequest) -> AuthResponse:
    """Authenticate with email and password; issue a new token.

    Existing tokens stay valid -- each login adds one.
    """
    user_store: UserStore = request.app.state.user_store
    user = authenticate_user(user_store, body.email, body.password)
    if user is None:
        logger.info("Failed login attempt")
        raise Unauthenticated("invalid credentials")

    _, token = issue_token(user_store, user)
    logger.info("User %d logged in", user.id)

    response.headers["Cache-Control"] = "no-store"
    return AuthResponse(message="login successful", user=UserOut.from_user(user), token=token, status=200)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request, current_user: User = Depends(get_current_user)) -> MessageResponse:
    """Revoke every token the current user holds, not just the presented one."""
    revoke_all_tokens(request.app.state.user_store, current_user)
    logger.info("User %d logged out", current_user.id)
    return MessageResponse(message="logged out", status=200)


@router.get("/user", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the currently authenticated user."""
    return UserResponse(message="user retrieved", user=UserOut.from_user(current_user), status=200)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_user(user_store: UserStore, user_id: int) -> User:
    user = user_store.get_by_id(user_id)
    if user is None:
        raise InternalError("user not found after write")
    return user
