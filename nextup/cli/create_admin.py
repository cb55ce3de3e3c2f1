"""Create the first admin account, or promote an existing one.

Usage:
    python -m nextup.cli.create_admin --email coach@example.com --name "Head Coach"
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
from typing import Optional, Sequence

from sqlalchemy import select

from nextup.models.users import MIN_PASSWORD_LENGTH
from nextup.schemas.users import User
from nextup.services.user_service import create_user, normalize_email, promote_user
from nextup.utils.db_async import SessionLocal, dispose_engine


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create an admin user or promote an existing account to admin.",
    )
    parser.add_argument("--email", required=True, help="Account email")
    parser.add_argument("--name", default="Admin", help="Display name for a new account")
    parser.add_argument(
        "--password",
        default=None,
        help="Password for a new account (prompted when omitted)",
    )
    return parser.parse_args(argv)


async def run(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    email = normalize_email(args.email)

    try:
        async with SessionLocal() as db:
            async with db.begin():
                result = await db.execute(
                    select(User.id).where(User.email == email)  # type: ignore[arg-type]
                )
                existing_id = result.scalar_one_or_none()

            if existing_id is not None:
                await promote_user(db, existing_id)
                print(f"Promoted {email} (id={existing_id}) to admin.")
                return 0

            password = args.password or getpass.getpass("Password: ")
            if len(password) < MIN_PASSWORD_LENGTH:
                print(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
                return 1

            user, error = await create_user(
                db, name=args.name, email=email, password=password, is_admin=True
            )
            if error or user is None:
                print(error or "Could not create user.")
                return 1
            print(f"Created admin {user.email} (id={user.id}).")
            return 0
    finally:
        await dispose_engine()


def main(argv: Optional[Sequence[str]] = None) -> None:
    raise SystemExit(asyncio.run(run(argv)))


if __name__ == "__main__":
    main()
