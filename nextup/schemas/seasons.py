from datetime import date
from typing import Optional

from sqlalchemy import Index, text
from sqlmodel import Field

from nextup.schemas.base import CreatedAtMixin


class Season(CreatedAtMixin, table=True):  # type: ignore[call-arg]
    __tablename__ = "seasons"
    # At most one active season; season_service deactivates before activating.
    __table_args__ = (
        Index(
            "uq_seasons_single_active",
            "is_active",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=120)
    year: Optional[int] = Field(default=None, description="League year, e.g. 2025")
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = Field(default=False)
