"""Validation rules on season payloads."""

from datetime import date

import pytest
from pydantic import ValidationError

from nextup.models.seasons import SeasonCreate, SeasonUpdate


def test_create_strips_name():
    payload = SeasonCreate(name="  Fall League  ", year=2025)
    assert payload.name == "Fall League"


def test_create_requires_non_blank_name():
    with pytest.raises(ValidationError):
        SeasonCreate(name="   ")


def test_create_rejects_inverted_dates():
    with pytest.raises(ValidationError):
        SeasonCreate(
            name="Fall",
            start_date=date(2025, 10, 1),
            end_date=date(2025, 9, 1),
        )


def test_update_tracks_only_supplied_fields():
    payload = SeasonUpdate.model_validate({"is_active": True})
    assert payload.model_dump(exclude_unset=True) == {"is_active": True}


@pytest.mark.parametrize("body", [{"name": None}, {"name": "  "}, {"is_active": None}])
def test_update_rejects_explicit_nulls_and_blanks(body):
    with pytest.raises(ValidationError):
        SeasonUpdate.model_validate(body)
