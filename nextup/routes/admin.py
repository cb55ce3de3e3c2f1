"""Admin-only user management and platform stats."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from nextup.models.users import AdminStats, UserMutationResponse, UserRead
from nextup.services.authz import Identity, require_admin
from nextup.services.user_service import (
    UserDeleteOutcome,
    delete_user,
    list_users,
    platform_counts,
    promote_user,
)
from nextup.utils.db_async import get_session

logger = logging.getLogger(__name__)

# Router-level dependency: rejected callers never reach a database session.
router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("/users", response_model=List[UserRead])
async def list_all_users(
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> List[UserRead]:
    users = await list_users(db)
    logger.info(f"Admin {identity.id} listed {len(users)} users")
    return [UserRead.model_validate(u) for u in users]


@router.patch("/users/{user_id}/promote", response_model=UserMutationResponse)
async def promote(
    user_id: int,
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> UserMutationResponse:
    """Grant admin privileges to an existing user."""
    user = await promote_user(db, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found.")

    logger.info(f"User {user_id} promoted to admin by admin_id={identity.id}")
    return UserMutationResponse(
        message=f"{user.email} promoted to admin.",
        user=UserRead.model_validate(user),
    )


@router.delete("/users/{user_id}", status_code=204)
async def remove_user(
    user_id: int,
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> Response:
    outcome = await delete_user(db, user_id=user_id, acting_user_id=identity.id)
    if outcome is UserDeleteOutcome.NOT_FOUND:
        raise HTTPException(status_code=404, detail="User not found.")
    if outcome is UserDeleteOutcome.SELF_DELETE:
        raise HTTPException(status_code=400, detail="You cannot delete your own account.")
    if outcome is UserDeleteOutcome.HAS_REGISTRATIONS:
        raise HTTPException(
            status_code=409,
            detail="User has paid registrations and cannot be deleted.",
        )
    return Response(status_code=204)


@router.get("/stats", response_model=AdminStats)
async def stats(db: AsyncSession = Depends(get_session)) -> AdminStats:
    counts = await platform_counts(db)
    return AdminStats(**counts)
