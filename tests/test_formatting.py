from datetime import date, datetime, time

import pytest

from masjid.core.formatting import (
    format_date_header,
    format_hhmm,
    format_relative_date,
    format_time_12h,
    minutes_since_midnight,
    parse_hhmm,
    truncate_text,
)

NOW = datetime(2024, 3, 15, 12, 0)


@pytest.mark.parametrize("value,expected", [
    ("13:30", time(13, 30)),
    ("05:07:59", time(5, 7)),
    ("5:07", time(5, 7)),
    ("23:59:59.123", time(23, 59)),
])
def test_parse_hhmm(value, expected):
    assert parse_hhmm(value) == expected


@pytest.mark.parametrize("value", ["", "24:00", "12:60", "noon"])
def test_parse_hhmm_rejects(value):
    with pytest.raises(ValueError):
        parse_hhmm(value)


def test_minutes_since_midnight():
    assert minutes_since_midnight("00:00") == 0
    assert minutes_since_midnight(time(23, 59, 59)) == 1439
    assert minutes_since_midnight(datetime(2024, 1, 1, 13, 30, 45)) == 810


@pytest.mark.parametrize("value,expected", [
    ("13:30", "1:30 PM"),
    ("00:05", "12:05 AM"),
    ("12:00", "12:00 PM"),
    (time(9, 15), "9:15 AM"),
])
def test_format_time_12h(value, expected):
    assert format_time_12h(value) == expected


def test_format_hhmm():
    assert format_hhmm(time(5, 3, 20)) == "05:03"


@pytest.mark.parametrize("timestamp,expected", [
    (datetime(2024, 3, 15, 11, 59, 30), "Just now"),
    (datetime(2024, 3, 15, 11, 45), "15 minutes ago"),
    (datetime(2024, 3, 15, 11, 0), "1 hour ago"),
    (datetime(2024, 3, 15, 7, 0), "5 hours ago"),
    (datetime(2024, 3, 14, 10, 0), "1 day ago"),
    (datetime(2024, 3, 10, 12, 0), "5 days ago"),
    (datetime(2024, 1, 15, 12, 0), "Jan 15"),
    (datetime(2023, 12, 25, 12, 0), "Dec 25, 2023"),
])
def test_format_relative_date(timestamp, expected):
    assert format_relative_date(timestamp, NOW) == expected


def test_format_date_header():
    today = date(2024, 10, 22)
    assert format_date_header(today, today) == "Today"
    assert format_date_header(date(2024, 10, 23), today) == "Tomorrow"
    assert format_date_header(date(2024, 10, 26), today) == "Saturday, October 26"


def test_truncate_text():
    assert truncate_text("short", 10) == "short"
    assert truncate_text("Jummah khutbah topic ", 7) == "Jummah..."
