"""
api/routes/v1/auth.py -- Session endpoints.

Routes:
  POST /api/v1/auth/register  -- create account; returns user + token pair (201)
  POST /api/v1/auth/login     -- password login; returns user + token pair
  POST /api/v1/auth/refresh   -- exchange refresh token; rotates the session
  POST /api/v1/auth/logout    -- clears the caller's refresh token (requires auth)
  GET  /api/v1/auth/me        -- identity from the caller's access token (requires auth)

Handlers are thin: the pydantic body has already been validated, the handler
calls one SessionManager method and maps the result. AuthError subclasses
propagate to the handler in api/main.py, which renders the error envelope
(409 duplicate_email, 401 invalid_credentials / invalid_refresh_token).

Security:
  Cache-Control: no-store on every response that carries tokens.
  Handlers are sync def so bcrypt work runs in FastAPI's thread pool rather
  than blocking the event loop.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from api.models import (
    AuthResponse,
    LoginRequest,
    LogoutResponse,
    MeResponse,
    RefreshRequest,
    RegisterRequest,
)
from auth.dependencies import get_current_identity, get_session_manager
from auth.models import AuthenticatedIdentity, RegisterInput
from auth.session import SessionManager

# Auth policy:
# - POST /api/v1/auth/register:  public
# - POST /api/v1/auth/login:     public
# - POST /api/v1/auth/refresh:   public -- the refresh token is the credential
# - POST /api/v1/auth/logout:    requires auth (get_current_identity)
# - GET  /api/v1/auth/me:        requires auth (get_current_identity)
router = APIRouter()


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(
    body: RegisterRequest,
    response: Response,
    manager: SessionManager = Depends(get_session_manager),
) -> AuthResponse:
    """Create an account and return its first token pair."""
    result = manager.register(
        RegisterInput(
            branch=body.branch,
            display_name=body.display_name,
            email=body.email,
            phone_number=body.phone_number,
            role=body.role,
            password=body.password,
        )
    )
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse.from_result(result)


@router.post("/auth/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    response: Response,
    manager: SessionManager = Depends(get_session_manager),
) -> AuthResponse:
    """Authenticate with email and password.

    Unknown email and wrong password both yield 401 invalid_credentials.
    """
    result = manager.login(body.email, body.password)
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse.from_result(result)


@router.post("/auth/refresh", response_model=AuthResponse)
def refresh(
    body: RefreshRequest,
    response: Response,
    manager: SessionManager = Depends(get_session_manager),
) -> AuthResponse:
    """Exchange a refresh token for a new pair. The presented token stops working."""
    result = manager.refresh(body.refresh_token)
    response.headers["Cache-Control"] = "no-store"
    return AuthResponse.from_result(result)


@router.post("/auth/logout", response_model=LogoutResponse)
def logout(
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    manager: SessionManager = Depends(get_session_manager),
) -> LogoutResponse:
    """End the caller's session. Safe to call repeatedly."""
    result = manager.logout(identity.id)
    return LogoutResponse(success=result.success)


@router.get("/auth/me", response_model=MeResponse)
def me(identity: AuthenticatedIdentity = Depends(get_current_identity)) -> MeResponse:
    """Return the identity carried by the caller's access token."""
    return MeResponse.from_identity(identity)
