"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The access token is read from the Authorization: Bearer <token> header,
verified exactly once per request by auth.tokens.verify_access_token(), and
the resulting AuthenticatedIdentity is handed to the route as an explicit
parameter. Nothing is stashed on the request for later lookup.

try_get_current_identity() is the soft variant (returns None on failure).
get_current_identity() wraps it and raises HTTP 401 if unauthenticated.

Layer rule: auth/dependencies.py may import from fastapi (for Request and
HTTPException) because this module is part of the FastAPI dependency
injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.errors import InvalidToken
from auth.models import AuthenticatedIdentity
from auth.session import SessionManager
from auth.tokens import verify_access_token


def get_session_manager(request: Request) -> SessionManager:
    """Return the SessionManager built in the app lifespan."""
    return request.app.state.session_manager


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def try_get_current_identity(request: Request) -> AuthenticatedIdentity | None:
    """Authenticate the request via its Bearer access token.

    Returns the identity on success, None on any failure. The subject must
    still exist in the user directory -- a token for a deleted account is
    treated as unauthenticated even though its signature is valid.
    """
    token = _bearer_token(request)
    if token is None:
        return None
    auth_config = request.app.state.auth_config
    try:
        identity = verify_access_token(token, auth_config.access_secret)
    except InvalidToken:
        return None
    if request.app.state.user_store.find_one(identity.id) is None:
        return None
    return identity


def get_current_identity(request: Request) -> AuthenticatedIdentity:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.post("/protected")
        def route(identity: AuthenticatedIdentity = Depends(get_current_identity)): ...
    """
    identity = try_get_current_identity(request)
    if identity is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
