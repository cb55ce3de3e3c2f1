"""Player and admin accounts."""

from __future__ import annotations

from sqlmodel import Field

from nextup.schemas.base import CreatedAtMixin


class User(CreatedAtMixin, table=True):  # type: ignore[call-arg]
    """Registered account. Emails are stored trimmed and lowercased."""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=120)
    email: str = Field(unique=True, index=True, max_length=254)
    password_hash: str
    is_admin: bool = Field(default=False, index=True)
