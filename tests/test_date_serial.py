from datetime import date, datetime, timedelta, timezone

import pytest

from timecards.modules.date_serial import DateSerialRangeError, from_serial, to_serial


@pytest.mark.parametrize(
    "day, serial",
    [
        (date(1900, 3, 1), 61),
        (date(2025, 1, 1), 45658),
        (date(2025, 1, 5), 45662),
        (date(9999, 12, 31), 2958465),
    ],
)
def test_known_serials(day, serial):
    assert to_serial(day) == serial
    assert from_serial(serial) == day


def test_round_trip_over_several_years():
    day = date(1999, 12, 25)
    while day < date(2030, 1, 1):
        assert from_serial(to_serial(day)) == day
        day += timedelta(days=37)


def test_datetime_uses_calendar_day_only():
    ts = datetime(2025, 1, 6, 23, 30, tzinfo=timezone.utc)
    assert to_serial(ts) == to_serial(date(2025, 1, 6))


@pytest.mark.parametrize("day", [date(1900, 2, 28), date(1899, 12, 31), date(1, 1, 1)])
def test_dates_before_supported_range_are_rejected(day):
    with pytest.raises(DateSerialRangeError):
        to_serial(day)


@pytest.mark.parametrize("serial", [0, 60, -5, 2958466])
def test_serials_outside_range_are_rejected(serial):
    with pytest.raises(DateSerialRangeError):
        from_serial(serial)


def test_fractional_serial_is_rejected():
    with pytest.raises(ValueError):
        from_serial(45658.5)


def test_range_error_is_value_error():
    assert issubclass(DateSerialRangeError, ValueError)
