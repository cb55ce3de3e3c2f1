"""Self-service account routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from nextup.models.users import MessageResponse, PasswordChange, ProfileUpdate, UserRead
from nextup.services.authz import Identity, get_current_identity
from nextup.services.user_service import change_password, get_user_by_id, update_profile
from nextup.utils.db_async import get_session

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=UserRead)
async def read_me(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> UserRead:
    user = await get_user_by_id(db, identity.id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found.")
    return UserRead.model_validate(user)


@router.patch("/me", response_model=UserRead)
async def update_me(
    payload: ProfileUpdate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> UserRead:
    """Update name and/or email; omitted fields are left alone."""
    user, error = await update_profile(
        db, user_id=identity.id, name=payload.name, email=payload.email
    )
    if error:
        raise HTTPException(status_code=409, detail=error)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found.")
    return UserRead.model_validate(user)


@router.put("/me/password", response_model=MessageResponse)
async def update_my_password(
    payload: PasswordChange,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    ok, error = await change_password(
        db,
        user_id=identity.id,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )
    if not ok:
        status_code = 404 if error == "User not found." else 400
        raise HTTPException(status_code=status_code, detail=error)
    return MessageResponse(message="Password updated successfully.")
