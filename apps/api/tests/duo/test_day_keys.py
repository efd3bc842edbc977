from __future__ import annotations

import datetime as dt

import pytest

from challengeties_api.services.duo.day_keys import day_key_for, normalize_day_key, today_day_key


@pytest.mark.parametrize("key", ["20260129", "20240229", "19991231"])
def test_compact_keys_are_fixed_points(key: str) -> None:
    assert normalize_day_key(key) == key
    assert normalize_day_key(normalize_day_key(key)) == key


def test_dashed_date_and_timestamps_agree_on_the_utc_day() -> None:
    expected = "20260129"
    assert normalize_day_key("2026-01-29") == expected
    assert normalize_day_key("2026-01-29T00:00:00Z") == expected
    assert normalize_day_key("2026-01-29T23:59:59.999Z") == expected
    assert normalize_day_key("2026-01-29T10:15:00+00:00") == expected


def test_offsets_are_converted_to_utc_before_keying() -> None:
    # 01:30 in Paris is still the previous day in UTC.
    assert normalize_day_key("2026-01-30T01:30:00+02:00") == "20260129"
    assert normalize_day_key("2026-01-29T20:00:00-05:00") == "20260130"


def test_datetime_and_date_objects() -> None:
    aware = dt.datetime(2026, 1, 29, 23, 30, tzinfo=dt.timezone(dt.timedelta(hours=-3)))
    assert normalize_day_key(aware) == "20260130"
    assert normalize_day_key(dt.datetime(2026, 1, 29, 12, 0)) == "20260129"
    assert normalize_day_key(dt.date(2026, 1, 29)) == "20260129"
    assert normalize_day_key(20260129) == "20260129"


@pytest.mark.parametrize(
    "value",
    [None, "", "   ", "yesterday", "2026-13-01", "20260230", "2026-1-9", True, 3.5, ["20260129"], {}],
)
def test_garbage_yields_none(value) -> None:
    assert normalize_day_key(value) is None


def test_today_day_key_uses_utc() -> None:
    now = dt.datetime(2026, 6, 1, 0, 30, tzinfo=dt.timezone(dt.timedelta(hours=2)))
    assert today_day_key(now) == "20260531"
    assert day_key_for(now) == "20260531"
