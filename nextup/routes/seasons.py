"""Season routes: the active season for players, full CRUD for admins."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from nextup.models.seasons import (
    SeasonCreate,
    SeasonMutationResponse,
    SeasonRead,
    SeasonUpdate,
)
from nextup.services.authz import Identity, get_current_identity, require_admin
from nextup.services.season_service import (
    InvalidSeasonDates,
    SeasonDeleteOutcome,
    create_season,
    delete_season,
    get_active_season,
    list_seasons,
    update_season,
)
from nextup.utils.db_async import get_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/seasons", tags=["seasons"])


@router.get("/active", response_model=SeasonRead)
async def read_active_season(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> SeasonRead:
    """The currently active season (any signed-in user)."""
    season = await get_active_season(db)
    if season is None:
        raise HTTPException(status_code=404, detail="No active season found")
    return SeasonRead.model_validate(season)


@router.get("", response_model=List[SeasonRead], dependencies=[Depends(require_admin)])
async def read_seasons(db: AsyncSession = Depends(get_session)) -> List[SeasonRead]:
    seasons = await list_seasons(db)
    return [SeasonRead.model_validate(s) for s in seasons]


@router.post(
    "",
    response_model=SeasonMutationResponse,
    status_code=201,
)
async def create_new_season(
    payload: SeasonCreate,
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> SeasonMutationResponse:
    """Create a season; it becomes the only active one."""
    season = await create_season(db, payload)
    logger.info(f"Season {season.id} created by admin_id={identity.id}")
    return SeasonMutationResponse(
        message="Season created successfully",
        season=SeasonRead.model_validate(season),
    )


@router.put(
    "/{season_id}",
    response_model=SeasonMutationResponse,
)
async def update_existing_season(
    season_id: int,
    payload: SeasonUpdate,
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> SeasonMutationResponse:
    try:
        season = await update_season(db, season_id, payload)
    except InvalidSeasonDates as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if season is None:
        raise HTTPException(status_code=404, detail="Season not found.")

    logger.info(f"Season {season_id} updated by admin_id={identity.id}")
    return SeasonMutationResponse(
        message="Season updated successfully",
        season=SeasonRead.model_validate(season),
    )


@router.delete("/{season_id}", status_code=204)
async def delete_existing_season(
    season_id: int,
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> Response:
    outcome = await delete_season(db, season_id)
    if outcome is SeasonDeleteOutcome.NOT_FOUND:
        raise HTTPException(status_code=404, detail="Season not found.")
    if outcome is SeasonDeleteOutcome.HAS_REGISTRATIONS:
        raise HTTPException(
            status_code=409,
            detail="Season has paid registrations and cannot be deleted.",
        )

    logger.info(f"Season {season_id} deleted by admin_id={identity.id}")
    return Response(status_code=204)
