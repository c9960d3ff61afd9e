from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.hrms.hrms.common.datetime_utils import parse_iso_datetime
from src.hrms.hrms.common.validators import require_int
from src.hrms.hrms.core.exceptions import ValidationError


def _as_local(moment):
    return moment.astimezone().replace(tzinfo=None)


def test_parse_iso_datetime_keeps_naive_values():
    assert parse_iso_datetime("2024-03-04T09:00:00") == datetime(2024, 3, 4, 9, 0)
    assert parse_iso_datetime("") is None
    assert parse_iso_datetime(None) is None


def test_parse_iso_datetime_converts_offsets_to_local_time():
    utc_nine = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)

    assert parse_iso_datetime("2024-03-04T09:00:00Z") == _as_local(utc_nine)
    assert parse_iso_datetime("2024-03-04T11:00:00+02:00") == _as_local(utc_nine)
    assert parse_iso_datetime("2024-03-04T09:00:00Z").tzinfo is None


def test_parse_iso_datetime_rejects_garbage():
    with pytest.raises(ValidationError):
        parse_iso_datetime("yesterday")


def test_require_int_accepts_whole_numbers():
    assert require_int("3", "Month") == 3
    assert require_int(3, "Month") == 3
    assert require_int(3.0, "Month") == 3


@pytest.mark.parametrize("value", [3.7, "3.7", True, None, "march", float("nan")])
def test_require_int_rejects_non_integers(value):
    with pytest.raises(ValidationError) as exc:
        require_int(value, "Month")

    assert str(exc.value) == "Month must be an integer"
