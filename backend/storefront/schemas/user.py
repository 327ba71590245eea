"""User Schemas — registration, login and profile payloads.

Invariants:
    - RegisterRequest: name non-empty, email local@domain.tld, password 6-72 chars
    - ProfileUpdateRequest: every field optional; password change needs currentPassword
    - UserRead never exposes the password hash

Design Decisions:
    - Field rules live in core.account_rules so they stay testable without Pydantic
"""

from datetime import datetime

from pydantic import Field, field_validator, model_validator

from storefront.core.account_rules import (
    check_email, check_name, check_password, normalize_email,
)
from storefront.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    name: str
    email: str
    password: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return check_name(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return check_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password(v)


class LoginRequest(CamelModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def normalize(cls, v: str) -> str:
        return normalize_email(v)


class ProfileUpdateRequest(CamelModel):
    """Patch of the caller's own profile; only sent fields are applied."""
    name: str | None = None
    email: str | None = None
    password: str | None = None
    current_password: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        return check_name(v) if v is not None else v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        return check_email(v) if v is not None else v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str | None) -> str | None:
        return check_password(v) if v is not None else v

    @model_validator(mode="after")
    def require_current_password(self):
        if self.password is not None and not self.current_password:
            raise ValueError("currentPassword is required to change password")
        return self


class ProfileDeleteRequest(CamelModel):
    password: str = Field(min_length=1)


class UserRead(CamelModel):
    """Public profile fields."""
    id: int
    name: str
    email: str
    role: str
    created_at: datetime
