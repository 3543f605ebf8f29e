from __future__ import annotations

from datetime import date, timedelta

import pytest

from patrimony.importing.dates import (
    decode_spreadsheet_serial,
    expand_two_digit_year,
    is_numeric_text,
    normalize_date,
)

FIXED_TODAY = date(2026, 1, 2)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("15/03/2024", "2024-03-15"),
        ("5/3/2024", "2024-03-05"),
        ("15/03/24", "2024-03-15"),
        ("15/03/74", "1974-03-15"),
        ("01/02/50", "2050-02-01"),
        ("01/02/51", "1951-02-01"),
        ("  15/03/2024  ", "2024-03-15"),
    ],
)
def test_slash_dates(raw, expected):
    assert normalize_date(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-03-15", "2024-03-15"),
        ("2024-3-5", "2024-03-05"),
        ("15-03-2024", "2024-03-15"),
        ("15-03-99", "1999-03-15"),
        ("15-03-07", "2007-03-15"),
    ],
)
def test_dash_dates(raw, expected):
    assert normalize_date(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1", "1900-01-01"),
        ("59", "1900-02-28"),
        ("60", "1900-02-29"),  # phantom leap day of the 1900 date system
        ("61", "1900-03-01"),
        ("43831", "2020-01-01"),
        ("45366", "2024-03-15"),
        ("45366.75", "2024-03-15"),
        ("2958465", "9999-12-31"),
    ],
)
def test_spreadsheet_serials(raw, expected):
    assert normalize_date(raw) == expected


def test_serials_match_epoch_offset():
    epoch = date(1899, 12, 30)
    for serial in range(61, 80000, 997):
        assert normalize_date(str(serial)) == (epoch + timedelta(days=serial)).isoformat()


def test_serial_takes_priority_over_other_shapes():
    # numeric text is always a serial, never e.g. a compact YYYYMMDD
    assert normalize_date("45000") == "2023-03-15"


def test_unparseable_falls_back_to_today():
    assert normalize_date("not a date", today=FIXED_TODAY) == "2026-01-02"


def test_unparseable_without_today_uses_current_date():
    assert normalize_date("not a date") == date.today().isoformat()


def test_empty_and_none_fall_back_to_today():
    assert normalize_date("", today=FIXED_TODAY) == "2026-01-02"
    assert normalize_date(None, today=FIXED_TODAY) == "2026-01-02"


def test_impossible_calendar_date_falls_back_to_today():
    assert normalize_date("31/02/2024", today=FIXED_TODAY) == "2026-01-02"


def test_generic_parsing_for_other_strings():
    assert normalize_date("March 15, 2024", today=FIXED_TODAY) == "2024-03-15"


def test_long_dash_strings_skip_the_dash_branch():
    assert normalize_date("2024-03-15T10:30:00", today=FIXED_TODAY) == "2024-03-15"


def test_expand_two_digit_year_pivot():
    assert expand_two_digit_year(0) == 2000
    assert expand_two_digit_year(50) == 2050
    assert expand_two_digit_year(51) == 1951
    assert expand_two_digit_year(99) == 1999
    assert expand_two_digit_year(2024) == 2024


def test_decode_serial_out_of_range():
    with pytest.raises(ValueError):
        decode_spreadsheet_serial(0)
    with pytest.raises(ValueError):
        decode_spreadsheet_serial(2958466)


def test_is_numeric_text():
    assert is_numeric_text("1001")
    assert is_numeric_text(" 12.5 ")
    assert not is_numeric_text("")
    assert not is_numeric_text("Chapa")
    assert not is_numeric_text("nan")
    assert not is_numeric_text("inf")
