"""Season store.

Owns the `is_active` flag: at most one season is active at any time. Every
write that can activate a season first deactivates the others inside the same
transaction, so concurrent readers never see zero-then-two or two active rows.
The partial unique index on `seasons.is_active` backs this up at the database
level.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from sqlalchemy import func, select, text, update
from sqlalchemy.ext.asyncio import AsyncSession

from nextup.models.seasons import SeasonCreate, SeasonUpdate
from nextup.schemas.seasons import Season
from nextup.schemas.tryouts import Tryout

logger = logging.getLogger(__name__)

# pg_advisory_xact_lock key serializing writes that activate a season.
ACTIVATION_LOCK_KEY = 0x5EA5_0001


class SeasonDeleteOutcome(str, Enum):
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    HAS_REGISTRATIONS = "has_registrations"


class InvalidSeasonDates(ValueError):
    """Merged start/end dates would be out of order."""


async def get_active_season(db: AsyncSession) -> Season | None:
    """Return the single active season, if any."""
    async with db.begin():
        result = await db.execute(
            select(Season).where(Season.is_active.is_(True)).limit(1)  # type: ignore[attr-defined]
        )
        return result.scalar_one_or_none()


async def list_seasons(db: AsyncSession) -> list[Season]:
    """All seasons, most recent first."""
    async with db.begin():
        result = await db.execute(
            select(Season).order_by(Season.created_at.desc(), Season.id.desc())  # type: ignore[attr-defined,union-attr]
        )
        return list(result.scalars().all())


async def _lock_activation(db: AsyncSession) -> None:
    """Make concurrent activations queue up instead of racing on the unique index.

    The lock is released when the surrounding transaction ends. SQLite already
    serializes writers, so only PostgreSQL needs it.
    """
    if db.get_bind().dialect.name == "postgresql":
        await db.execute(
            text("SELECT pg_advisory_xact_lock(:key)"), {"key": ACTIVATION_LOCK_KEY}
        )


async def _deactivate_other_seasons(db: AsyncSession, *, keep_id: int | None = None) -> int:
    stmt = update(Season).where(Season.is_active.is_(True))  # type: ignore[attr-defined]
    if keep_id is not None:
        stmt = stmt.where(Season.id != keep_id)  # type: ignore[arg-type]
    result = await db.execute(stmt.values(is_active=False))
    return result.rowcount or 0


async def _insert_season(db: AsyncSession, season: Season) -> Season:
    db.add(season)
    await db.flush()
    return season


async def create_season(db: AsyncSession, data: SeasonCreate) -> Season:
    """Create a season and make it the only active one.

    Deactivation and insert share one transaction; if either fails, both roll
    back and the previously active season stays active.
    """
    season = Season(
        name=data.name,
        year=data.year,
        start_date=data.start_date,
        end_date=data.end_date,
        is_active=True,
    )
    async with db.begin():
        await _lock_activation(db)
        deactivated = await _deactivate_other_seasons(db)
        await _insert_season(db, season)

    logger.info(
        f"Season created season_id={season.id} name={season.name!r} "
        f"(deactivated {deactivated} previous)"
    )
    return season


async def update_season(
    db: AsyncSession,
    season_id: int,
    data: SeasonUpdate,
) -> Season | None:
    """Merge the supplied fields into an existing season.

    Fields absent from the request keep their stored values. Activating a
    season deactivates every other one in the same transaction.

    Returns:
        The updated season, or None if it does not exist.

    Raises:
        InvalidSeasonDates: if the merged start_date is after end_date.
    """
    changes: dict[str, Any] = data.model_dump(exclude_unset=True)

    async with db.begin():
        season = await db.get(Season, season_id)
        if season is None:
            return None

        start_date = changes.get("start_date", season.start_date)
        end_date = changes.get("end_date", season.end_date)
        if start_date and end_date and start_date > end_date:
            raise InvalidSeasonDates("start_date must be on or before end_date")

        if changes.get("is_active") is True:
            await _lock_activation(db)
            await _deactivate_other_seasons(db, keep_id=season_id)

        for field, value in changes.items():
            setattr(season, field, value)

    logger.info(f"Season updated season_id={season_id} fields={sorted(changes)}")
    return season


async def delete_season(db: AsyncSession, season_id: int) -> SeasonDeleteOutcome:
    """Delete a season unless paid registrations reference it."""
    async with db.begin():
        season = await db.get(Season, season_id)
        if season is None:
            return SeasonDeleteOutcome.NOT_FOUND

        registrations = await db.execute(
            select(func.count())
            .select_from(Tryout)
            .where(Tryout.season_id == season_id)  # type: ignore[arg-type]
        )
        if registrations.scalar_one() > 0:
            return SeasonDeleteOutcome.HAS_REGISTRATIONS

        await db.delete(season)

    logger.info(f"Season deleted season_id={season_id}")
    return SeasonDeleteOutcome.DELETED
