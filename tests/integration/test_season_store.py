"""Integration tests for the single-active-season invariant."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nextup.models.seasons import SeasonCreate, SeasonUpdate
from nextup.services import season_service
from nextup.services.season_service import (
    InvalidSeasonDates,
    SeasonDeleteOutcome,
    create_season,
    delete_season,
    get_active_season,
    list_seasons,
    update_season,
)
from tests.integration.api_helpers import (
    active_season_ids,
    create_season as seed_season,
    create_tryout,
    create_user,
)


@pytest.mark.asyncio
class TestSeasonActivation:
    async def test_each_create_becomes_the_only_active_season(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        db_session: AsyncSession,
    ):
        """Sequential creates always leave exactly the newest season active."""
        created: list[int] = []
        for name in ("Spring 2025", "Summer 2025", "Fall 2025"):
            async with session_factory() as db:
                season = await create_season(db, SeasonCreate(name=name, year=2025))
            assert season.is_active is True
            created.append(season.id)
            assert await active_season_ids(db_session) == [season.id]

        async with session_factory() as db:
            active = await get_active_season(db)
        assert active is not None
        assert active.id == created[-1]

    async def test_concurrent_creates_both_succeed(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        db_session: AsyncSession,
    ):
        """Simultaneous creates take turns and leave exactly one active season."""

        async def _create(name: str):
            async with session_factory() as db:
                return await create_season(db, SeasonCreate(name=name))

        first, second = await asyncio.gather(_create("Summer 2025"), _create("Fall 2025"))

        active = await active_season_ids(db_session)
        assert len(active) == 1
        assert active[0] in {first.id, second.id}

    async def test_failed_insert_keeps_previous_season_active(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        db_session: AsyncSession,
        monkeypatch: pytest.MonkeyPatch,
    ):
        """A failure after deactivation rolls the deactivation back too."""
        async with session_factory() as db:
            first = await create_season(db, SeasonCreate(name="Spring 2025"))

        async def _boom(db, season):
            raise RuntimeError("insert failed")

        monkeypatch.setattr(season_service, "_insert_season", _boom)

        with pytest.raises(RuntimeError):
            async with session_factory() as db:
                await create_season(db, SeasonCreate(name="Summer 2025"))

        assert await active_season_ids(db_session) == [first.id]

    async def test_no_active_season_when_none_exist(
        self,
        session_factory: async_sessionmaker[AsyncSession],
    ):
        async with session_factory() as db:
            assert await get_active_season(db) is None

    async def test_update_activation_deactivates_the_rest(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        db_session: AsyncSession,
    ):
        older = await seed_season(db_session, name="Spring 2025")
        current = await seed_season(db_session, name="Summer 2025", is_active=True)

        async with session_factory() as db:
            season = await update_season(db, older, SeasonUpdate(is_active=True))

        assert season is not None and season.is_active is True
        assert await active_season_ids(db_session) == [older]
        assert current != older

    async def test_update_deactivation_leaves_no_active_season(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        db_session: AsyncSession,
    ):
        current = await seed_season(db_session, name="Summer 2025", is_active=True)

        async with session_factory() as db:
            await update_season(db, current, SeasonUpdate(is_active=False))

        assert await active_season_ids(db_session) == []


@pytest.mark.asyncio
class TestSeasonUpdates:
    async def test_partial_update_keeps_unsent_fields(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        db_session: AsyncSession,
    ):
        season_id = await seed_season(
            db_session,
            name="Fall 2025",
            year=2025,
            start_date=date(2025, 9, 1),
            end_date=date(2025, 11, 30),
            is_active=True,
        )

        async with session_factory() as db:
            season = await update_season(
                db, season_id, SeasonUpdate.model_validate({"name": "Fall League"})
            )

        assert season is not None
        assert season.name == "Fall League"
        assert season.year == 2025
        assert season.start_date == date(2025, 9, 1)
        assert season.end_date == date(2025, 11, 30)
        assert season.is_active is True

    async def test_merged_dates_out_of_order_are_rejected(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        db_session: AsyncSession,
    ):
        season_id = await seed_season(
            db_session,
            name="Fall 2025",
            start_date=date(2025, 9, 1),
            end_date=date(2025, 11, 30),
        )

        with pytest.raises(InvalidSeasonDates):
            async with session_factory() as db:
                await update_season(
                    db,
                    season_id,
                    SeasonUpdate.model_validate({"start_date": "2025-12-15"}),
                )

    async def test_update_missing_season_returns_none(
        self,
        session_factory: async_sessionmaker[AsyncSession],
    ):
        async with session_factory() as db:
            assert await update_season(db, 999, SeasonUpdate(name="Nope")) is None

    async def test_list_is_newest_first(
        self,
        session_factory: async_sessionmaker[AsyncSession],
    ):
        for name in ("Spring", "Summer", "Fall"):
            async with session_factory() as db:
                await create_season(db, SeasonCreate(name=name))

        async with session_factory() as db:
            seasons = await list_seasons(db)
        assert [s.name for s in seasons] == ["Fall", "Summer", "Spring"]


@pytest.mark.asyncio
class TestSeasonDeletion:
    async def test_delete_unreferenced_season(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        db_session: AsyncSession,
    ):
        season_id = await seed_season(db_session, name="Spring 2025")

        async with session_factory() as db:
            assert await delete_season(db, season_id) is SeasonDeleteOutcome.DELETED
        async with session_factory() as db:
            assert await delete_season(db, season_id) is SeasonDeleteOutcome.NOT_FOUND

    async def test_delete_with_registrations_is_refused(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        db_session: AsyncSession,
    ):
        user_id = await create_user(db_session, email="player@example.com")
        season_id = await seed_season(db_session, name="Spring 2025", is_active=True)
        await create_tryout(db_session, user_id=user_id, season_id=season_id)

        async with session_factory() as db:
            outcome = await delete_season(db, season_id)

        assert outcome is SeasonDeleteOutcome.HAS_REGISTRATIONS
        assert await active_season_ids(db_session) == [season_id]
