"""Account helpers: password hashing, registration, login and admin management."""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import os
from enum import Enum

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from nextup.config import settings
from nextup.models.users import MIN_PASSWORD_LENGTH
from nextup.schemas.seasons import Season
from nextup.schemas.tryouts import Tryout
from nextup.schemas.users import User

logger = logging.getLogger(__name__)

EMAIL_IN_USE = "Email already in use."


class UserDeleteOutcome(str, Enum):
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    SELF_DELETE = "self_delete"
    HAS_REGISTRATIONS = "has_registrations"


def normalize_email(email: str) -> str:
    """Normalize an email address for storage and comparisons."""
    return email.strip().lower()


def _b64decode(raw: str) -> bytes:
    padding = "=" * (-len(raw) % 4)
    return base64.urlsafe_b64decode(raw + padding)


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def hash_password(password: str, *, iterations: int | None = None) -> str:
    """Return a PBKDF2-SHA256 password hash string."""
    iterations = iterations or settings.password_hash_iterations
    salt = os.urandom(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt,
        iterations,
    )
    return f"pbkdf2_sha256${iterations}${_b64encode(salt)}${_b64encode(digest)}"


def verify_password(password: str, encoded_hash: str) -> bool:
    """Check a password against a stored `pbkdf2_sha256$...` hash."""
    try:
        algorithm, iterations_raw, salt_b64, digest_b64 = encoded_hash.split("$", 3)
    except ValueError:
        return False

    if algorithm != "pbkdf2_sha256":
        return False

    try:
        iterations = int(iterations_raw)
        salt = _b64decode(salt_b64)
        expected = _b64decode(digest_b64)
    except (ValueError, TypeError):
        return False

    actual = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt,
        iterations,
    )
    return hmac.compare_digest(actual, expected)


async def create_user(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    password: str,
    is_admin: bool = False,
) -> tuple[User | None, str | None]:
    """Create an account.

    Returns:
        (user, None) on success, (None, error_message) if the email is taken.
    """
    normalized_email = normalize_email(email)
    user = User(
        name=name.strip(),
        email=normalized_email,
        password_hash=hash_password(password),
        is_admin=is_admin,
    )
    try:
        async with db.begin():
            existing = await db.execute(
                select(User.id).where(User.email == normalized_email)  # type: ignore[arg-type]
            )
            if existing.scalar_one_or_none() is not None:
                return None, EMAIL_IN_USE
            db.add(user)
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email.
        return None, EMAIL_IN_USE

    logger.info(f"User registered user_id={user.id}")
    return user, None


async def authenticate_user(
    db: AsyncSession,
    *,
    email: str,
    password: str,
) -> User | None:
    """Return the user if the credentials are valid."""
    async with db.begin():
        result = await db.execute(
            select(User).where(User.email == normalize_email(email))  # type: ignore[arg-type]
        )
        user = result.scalar_one_or_none()
    if user is None:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    async with db.begin():
        return await db.get(User, user_id)


async def list_users(db: AsyncSession) -> list[User]:
    """All accounts, newest first."""
    async with db.begin():
        result = await db.execute(
            select(User).order_by(User.created_at.desc(), User.id.desc())  # type: ignore[attr-defined,union-attr]
        )
        return list(result.scalars().all())


async def update_profile(
    db: AsyncSession,
    *,
    user_id: int,
    name: str | None = None,
    email: str | None = None,
) -> tuple[User | None, str | None]:
    """Apply a partial profile update. Omitted fields keep their values.

    Returns:
        (user, None) on success, (None, None) if the user does not exist,
        (None, error_message) if the new email belongs to someone else.
    """
    try:
        async with db.begin():
            user = await db.get(User, user_id)
            if user is None:
                return None, None

            if email is not None:
                normalized_email = normalize_email(email)
                clash = await db.execute(
                    select(User.id).where(
                        User.email == normalized_email,  # type: ignore[arg-type]
                        User.id != user_id,  # type: ignore[arg-type]
                    )
                )
                if clash.scalar_one_or_none() is not None:
                    return None, EMAIL_IN_USE
                user.email = normalized_email
            if name is not None:
                user.name = name.strip()
    except IntegrityError:
        return None, EMAIL_IN_USE

    return user, None


async def change_password(
    db: AsyncSession,
    *,
    user_id: int,
    current_password: str,
    new_password: str,
) -> tuple[bool, str | None]:
    """Change a user's password after verifying the current password.

    Returns:
        A tuple of (success, error_message). If success is True, error_message is None.
    """
    async with db.begin():
        user = await db.get(User, user_id)
        if user is None:
            return False, "User not found."

        if not verify_password(current_password, user.password_hash):
            return False, "Current password is incorrect."

        if len(new_password) < MIN_PASSWORD_LENGTH:
            return False, f"New password must be at least {MIN_PASSWORD_LENGTH} characters."

        if new_password == current_password:
            return False, "New password must be different from current password."

        user.password_hash = hash_password(new_password)

    logger.info(f"Password changed user_id={user_id}")
    return True, None


async def promote_user(db: AsyncSession, user_id: int) -> User | None:
    """Grant admin privileges. Returns None if the user does not exist."""
    async with db.begin():
        user = await db.get(User, user_id)
        if user is None:
            return None
        user.is_admin = True
    return user


async def delete_user(
    db: AsyncSession,
    *,
    user_id: int,
    acting_user_id: int,
) -> UserDeleteOutcome:
    """Delete an account unless it is the caller's own or it has paid registrations."""
    if user_id == acting_user_id:
        return UserDeleteOutcome.SELF_DELETE

    async with db.begin():
        user = await db.get(User, user_id)
        if user is None:
            return UserDeleteOutcome.NOT_FOUND

        registrations = await db.execute(
            select(func.count()).select_from(Tryout).where(Tryout.user_id == user_id)  # type: ignore[arg-type]
        )
        if registrations.scalar_one() > 0:
            return UserDeleteOutcome.HAS_REGISTRATIONS

        await db.delete(user)

    logger.info(f"User deleted user_id={user_id} by admin_id={acting_user_id}")
    return UserDeleteOutcome.DELETED


async def platform_counts(db: AsyncSession) -> dict[str, int]:
    """Totals shown on the admin dashboard."""
    async with db.begin():
        users = await db.execute(select(func.count()).select_from(User))
        seasons = await db.execute(select(func.count()).select_from(Season))
        tryouts = await db.execute(select(func.count()).select_from(Tryout))
        return {
            "total_users": int(users.scalar_one()),
            "total_seasons": int(seasons.scalar_one()),
            "total_registrations": int(tryouts.scalar_one()),
        }
