"""Request/response schemas for auth and profile endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.schemas.updates import SetCompany, SetName, SetPhone, UserFieldUpdate


class RegisterRequest(BaseModel):
    """Self-service registration; the account gets the default 'user' role."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128, description="Password")
    name: str = Field(..., min_length=1, max_length=255)
    phone: str | None = Field(default=None, max_length=50)


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class UserResponse(BaseModel):
    """User summary returned with a token."""

    id: UUID
    email: str
    name: str
    roles: list[str] = Field(default_factory=list)


class AuthResponse(BaseModel):
    """JWT access token returned after successful login or registration."""

    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserResponse


class CurrentUser(BaseModel):
    """Authenticated user for dependency injection; roles resolved from the database per request."""

    id: UUID
    email: str
    roles: list[str] = Field(default_factory=list)

    def has_role(self, role: str) -> bool:
        return role in self.roles


class ProfileResponse(BaseModel):
    """Full user record with current role names (never the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    phone: str | None
    company: str | None
    roles: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ProfileUpdateRequest(BaseModel):
    """
    Self-service profile edit. Email and roles are not editable here; unknown
    keys are rejected. Null or empty phone/company clears the field; name
    cannot be cleared.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    company: str | None = Field(default=None, max_length=255)

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v: str | None) -> str:
        if v is None:
            raise ValueError("name cannot be null")
        return v

    def to_updates(self) -> list[UserFieldUpdate]:
        fields = self.model_fields_set
        updates: list[UserFieldUpdate] = []
        if "name" in fields and self.name is not None:
            updates.append(SetName(self.name))
        if "phone" in fields:
            updates.append(SetPhone(self.phone or None))
        if "company" in fields:
            updates.append(SetCompany(self.company or None))
        return updates


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)
    password: str = Field(..., min_length=1, max_length=128)
