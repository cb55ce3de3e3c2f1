"""Request/response models for accounts and authentication."""

from datetime import datetime
from typing import Optional

from pydantic import field_validator
from sqlmodel import SQLModel, Field

MIN_PASSWORD_LENGTH = 8


def _check_email(v: str) -> str:
    v = v.strip()
    local, sep, domain = v.partition("@")
    if not sep or not local or "." not in domain:
        raise ValueError("A valid email address is required.")
    return v


class UserRead(SQLModel):
    id: int
    name: str
    email: str
    is_admin: bool
    created_at: datetime


class RegisterRequest(SQLModel):
    name: str = Field(max_length=120)
    email: str = Field(max_length=254)
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=256)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required.")
        return v.strip()

    @field_validator("email")
    @classmethod
    def email_shape(cls, v: str) -> str:
        return _check_email(v)


class LoginRequest(SQLModel):
    email: str
    password: str


class ProfileUpdate(SQLModel):
    name: Optional[str] = Field(default=None, max_length=120)
    email: Optional[str] = Field(default=None, max_length=254)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty.")
        return v.strip() if v is not None else None

    @field_validator("email")
    @classmethod
    def email_shape(cls, v: Optional[str]) -> Optional[str]:
        return _check_email(v) if v is not None else None


class PasswordChange(SQLModel):
    current_password: str
    new_password: str = Field(max_length=256)


class AuthResponse(SQLModel):
    message: str
    user: UserRead
    token: str


class TokenResponse(SQLModel):
    token: str


class MessageResponse(SQLModel):
    message: str


class UserMutationResponse(SQLModel):
    message: str
    user: UserRead


class AdminStats(SQLModel):
    total_users: int
    total_seasons: int
    total_registrations: int
    message: str = "Admin stats fetched successfully."
