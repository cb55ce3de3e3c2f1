"""Base Classes to Use as MixIns Elsewhere in App"""

from datetime import UTC, datetime

from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class CreatedAtMixin(SQLModel):
    created_at: datetime = Field(default_factory=utcnow, index=True)
