"""
API request and response models for SessionGate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Request models are the input-validation step: FastAPI validates the body
against them before a handler (and therefore SessionManager) runs. A failure
is reported as 422 validation_error, never as one of the auth error codes.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import AuthenticatedIdentity, AuthResult, UserView

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Shape check only (local@domain.tld). Deliverability is not our concern.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

PASSWORD_MIN_LENGTH = 8


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register."""

    branch: str = Field(min_length=1, max_length=100)
    display_name: Optional[str] = Field(default=None, max_length=255)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    phone_number: Optional[str] = Field(default=None, max_length=50)
    role: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=255)


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


class RefreshRequest(BaseModel):
    """Request body for POST /api/v1/auth/refresh."""

    refresh_token: str = Field(min_length=1, max_length=4096)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Sanitized user view. Password and refresh-token hashes never appear here."""

    model_config = ConfigDict(frozen=True)

    id: str
    branch: str
    created_at: Optional[str]
    updated_at: Optional[str]
    display_name: Optional[str]
    email: str
    phone_number: Optional[str]
    role: str

    @classmethod
    def from_view(cls, view: UserView) -> "UserResponse":
        return cls(
            id=view.id,
            branch=view.branch,
            created_at=view.created_at,
            updated_at=view.updated_at,
            display_name=view.display_name,
            email=view.email,
            phone_number=view.phone_number,
            role=view.role,
        )


class AuthResponse(BaseModel):
    """Response for register, login and refresh: the user plus a fresh token pair."""

    model_config = ConfigDict(frozen=True)

    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

    @classmethod
    def from_result(cls, result: AuthResult) -> "AuthResponse":
        """Factory Method -- mapping lives beside the output model, not in the routes."""
        return cls(
            user=UserResponse.from_view(result.user),
            access_token=result.tokens.access_token,
            refresh_token=result.tokens.refresh_token,
        )


class LogoutResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool


class MeResponse(BaseModel):
    """Identity carried by the caller's access token."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    role: str

    @classmethod
    def from_identity(cls, identity: AuthenticatedIdentity) -> "MeResponse":
        return cls(id=identity.id, email=identity.email, role=identity.role)


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
