"""Admin authentication endpoints.

A single shared admin password is exchanged for a short-lived bearer token.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request

from app.api.schemas import ErrorResponse, LoginRequest, LoginResponse, SessionResponse
from app.application.admin_session import AdminSessionManager
from app.domain.exceptions import AuthenticationError

router = APIRouter(prefix="/auth", tags=["Auth"])


def get_session_manager(request: Request) -> AdminSessionManager:
    """Get the application's admin session manager."""
    return request.app.state.sessions


SessionsDep = Annotated[AdminSessionManager, Depends(get_session_manager)]


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Admin login",
)
async def login(body: LoginRequest, sessions: SessionsDep) -> LoginResponse:
    """Exchange the admin password for a session token."""
    session = sessions.login(body.password)
    return LoginResponse(token=session.token, expires_at=session.expires_at)


@router.get(
    "/session",
    response_model=SessionResponse,
    summary="Check admin session",
)
async def check_session(
    sessions: SessionsDep,
    authorization: Annotated[str | None, Header()] = None,
) -> SessionResponse:
    """Report whether the bearer token is a live admin session."""
    token = None
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer":
            token = value.strip()

    try:
        expires_at = sessions.verify(token)
    except AuthenticationError:
        return SessionResponse(authenticated=False)

    return SessionResponse(authenticated=True, expires_at=expires_at)
