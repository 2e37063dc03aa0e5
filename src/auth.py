"""Email + password authentication backed by Supabase Auth.

There is no authorization model beyond "signed in or not": any valid session
may upload, update and delete videos.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.storage.objects import get_supabase_client

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


class AuthError(Exception):
    """Sign-up, sign-in or token verification was refused."""


@dataclass(frozen=True)
class Principal:
    """An authenticated user."""

    user_id: str
    email: str | None
    access_token: str


@dataclass(frozen=True)
class AuthSession:
    """Tokens returned by a successful sign-in."""

    access_token: str
    refresh_token: str | None
    user_id: str
    email: str | None


def sign_up(email: str, password: str) -> str:
    """Register a new user and return the user id."""
    try:
        response = get_supabase_client().auth.sign_up({"email": email, "password": password})
    except Exception as exc:
        raise AuthError(str(exc)) from exc
    if response.user is None:
        raise AuthError("Sign-up did not return a user")
    logger.info("Registered user %s", response.user.id)
    return str(response.user.id)


def sign_in(email: str, password: str) -> AuthSession:
    try:
        response = get_supabase_client().auth.sign_in_with_password(
            {"email": email, "password": password}
        )
    except Exception as exc:
        raise AuthError(str(exc)) from exc
    if response.session is None or response.user is None:
        raise AuthError("Invalid email or password")
    return AuthSession(
        access_token=response.session.access_token,
        refresh_token=response.session.refresh_token,
        user_id=str(response.user.id),
        email=response.user.email,
    )


def sign_out(access_token: str) -> None:
    """Revoke the session behind ``access_token``."""
    try:
        get_supabase_client().auth.admin.sign_out(access_token)
    except Exception as exc:
        raise AuthError(str(exc)) from exc


def verify_token(access_token: str) -> Principal:
    try:
        response = get_supabase_client().auth.get_user(access_token)
    except Exception as exc:
        raise AuthError(str(exc)) from exc
    if response is None or response.user is None:
        raise AuthError("Session is no longer valid")
    return Principal(
        user_id=str(response.user.id),
        email=response.user.email,
        access_token=access_token,
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Principal:
    """FastAPI dependency: the signed-in principal, or 401."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="You must be signed in to upload videos")
    try:
        return verify_token(credentials.credentials)
    except AuthError as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise HTTPException(status_code=401, detail="Invalid or expired session") from exc
