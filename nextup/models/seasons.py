"""Request/response models for season management."""

from datetime import date, datetime
from typing import Optional

from pydantic import field_validator, model_validator
from sqlmodel import SQLModel, Field


class SeasonRead(SQLModel):
    id: int
    name: str
    year: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool
    created_at: datetime


class _SeasonFields(SQLModel):
    year: Optional[int] = Field(default=None, ge=1900, le=2200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def dates_in_order(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


class SeasonCreate(_SeasonFields):
    """Payload for creating a season. New seasons are always created active."""

    name: str = Field(max_length=120)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required.")
        return v


class SeasonUpdate(_SeasonFields):
    """Partial update; only fields present in the request body are applied."""

    name: Optional[str] = Field(default=None, max_length=120)
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> str:
        if v is None or not v.strip():
            raise ValueError("Name cannot be empty.")
        return v.strip()

    @field_validator("is_active")
    @classmethod
    def is_active_not_null(cls, v: Optional[bool]) -> bool:
        if v is None:
            raise ValueError("is_active cannot be null.")
        return v


class SeasonMutationResponse(SQLModel):
    message: str
    season: SeasonRead
