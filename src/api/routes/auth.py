"""Auth endpoints: sign up, sign in, sign out, current user."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response

from src import auth
from src.api.models import CredentialsRequest, SessionResponse, SignUpResponse, UserResponse

router = APIRouter()


@router.post("/api/auth/sign-up", response_model=SignUpResponse, status_code=201)
async def sign_up(body: CredentialsRequest) -> SignUpResponse:
    try:
        user_id = auth.sign_up(body.email, body.password)
    except auth.AuthError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return SignUpResponse(user_id=user_id)


@router.post("/api/auth/sign-in", response_model=SessionResponse)
async def sign_in(body: CredentialsRequest) -> SessionResponse:
    try:
        session = auth.sign_in(body.email, body.password)
    except auth.AuthError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    return SessionResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        user_id=session.user_id,
        email=session.email,
    )


@router.post("/api/auth/sign-out", status_code=204)
async def sign_out(user: auth.Principal = Depends(auth.get_current_user)) -> Response:
    try:
        auth.sign_out(user.access_token)
    except auth.AuthError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return Response(status_code=204)


@router.get("/api/auth/me", response_model=UserResponse)
async def me(user: auth.Principal = Depends(auth.get_current_user)) -> UserResponse:
    return UserResponse(user_id=user.user_id, email=user.email)
