"""
API request and response models for authgate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Request bodies declare every field optional: a missing field is a 400 with a
human-readable message from the route, not a framework-generated 422.

Usernames and emails are whitespace-stripped. Passwords are taken verbatim;
the 72-byte bcrypt limit is enforced in auth/passwords.py, where bytes are
counted rather than characters.
"""

from __future__ import annotations

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from auth.models import User

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

_Identifier = Annotated[str, StringConstraints(strip_whitespace=True, max_length=255)]
_Password = Annotated[str, StringConstraints(max_length=255)]


class RegisterRequest(BaseModel):
    """Request body for POST /api/register."""

    username: Optional[_Identifier] = None
    email: Optional[_Identifier] = None
    password: Optional[_Password] = None

    def is_complete(self) -> bool:
        return bool(self.username and self.email and self.password)


class LoginRequest(BaseModel):
    """Request body for POST /api/login."""

    username: Optional[_Identifier] = None
    password: Optional[_Password] = None

    def is_complete(self) -> bool:
        return bool(self.username and self.password)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """A user record as returned by register and the user listings.

    password_hash is the stored digest, never the plaintext.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    password_hash: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            password_hash=user.password_hash,
        )


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Error envelope shared by every 4xx/5xx response except the 400 field check."""

    error: str


class HealthResponse(BaseModel):
    """Response body for GET /api/health."""

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
