from datetime import datetime, timezone

import pytest

from utils.datetime_utils import (
    fixture_status, matches_date_filter, normalize_iso_datetime, parse_datetime, validate_date_filter,
)

NOW = datetime(2030, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("raw,expected", [
    ("2030-03-10T15:00:00+00:00", "2030-03-10T15:00:00Z"),
    ("2030-03-10 15:00:00.123+00:00", "2030-03-10T15:00:00Z"),
    ("2030-03-10T15:00:00z", "2030-03-10T15:00:00Z"),
    ("", ""),
])
def test_normalize_iso_datetime(raw, expected):
    assert normalize_iso_datetime(raw) == expected


def test_parse_datetime_is_aware_utc():
    assert parse_datetime("2030-03-10T15:00:00Z") == datetime(2030, 3, 10, 15, tzinfo=timezone.utc)
    assert parse_datetime("2030-03-10T17:00:00+02:00") == datetime(2030, 3, 10, 15, tzinfo=timezone.utc)
    assert parse_datetime("2030-03-10T15:00:00").tzinfo == timezone.utc


@pytest.mark.parametrize("kickoff,status", [
    ("2030-03-10T13:00:00Z", "upcoming"),
    ("2030-03-10T12:00:00Z", "live"),
    ("2030-03-10T09:00:00Z", "live"),
    ("2030-03-10T08:59:00Z", "finished"),
])
def test_fixture_status(kickoff, status):
    assert fixture_status(kickoff, now=NOW) == status


@pytest.mark.parametrize("date_filter,kickoff,expected", [
    (None, "2001-01-01T00:00:00Z", True),
    ("today", "2030-03-10T23:30:00Z", True),
    ("today", "2030-03-11T00:30:00Z", False),
    ("tomorrow", "2030-03-11T00:30:00Z", True),
    ("upcoming", "2030-03-10T12:30:00Z", True),
    ("upcoming", "2030-03-10T11:30:00Z", False),
    ("past", "2030-03-10T11:30:00Z", True),
    ("2030-03-12", "2030-03-12T19:45:00Z", True),
    ("2030-03-12", "2030-03-13T19:45:00Z", False),
])
def test_matches_date_filter(date_filter, kickoff, expected):
    assert matches_date_filter(kickoff, date_filter, now=NOW) is expected


def test_validate_date_filter():
    assert validate_date_filter(None) is None
    assert validate_date_filter("tomorrow") == "tomorrow"
    assert validate_date_filter("2030-03-12") == "2030-03-12"
    with pytest.raises(ValueError, match="Invalid date filter"):
        validate_date_filter("12/03/2030")
