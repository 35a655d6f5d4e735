from datetime import date, datetime, timezone

from conftest import NOW

from photovocab.utils.time import Clock, FixedClock, SystemClock, parse_day


def test_clocks_satisfy_clock_protocol(clock):
    assert isinstance(clock, Clock)
    assert isinstance(SystemClock(), Clock)
    assert not isinstance(object(), Clock)


def test_fixed_clock_advance(clock):
    clock.advance(days=1, hours=2)

    assert clock.now() == datetime(2026, 3, 11, 11, 30, tzinfo=timezone.utc)
    assert clock.today() == date(2026, 3, 11)


def test_system_clock_is_timezone_aware():
    assert SystemClock().now().tzinfo is not None


def test_parse_day():
    assert parse_day(None) is None
    assert parse_day("2026-03-14") == date(2026, 3, 14)
    assert parse_day("2026-03-14T08:00:00Z") == date(2026, 3, 14)
    assert parse_day(NOW) == date(2026, 3, 10)
    assert FixedClock(NOW).today() == parse_day(NOW)
