"""Tests for the injectable clocks."""

from datetime import date, datetime, timedelta, timezone

from gl_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:
    def test_now_is_stable(self):
        clock = DeterministicClock(datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc))
        assert clock.now() == clock.now()
        assert clock.today() == date(2024, 6, 30)

    def test_tick_and_advance(self):
        start = datetime(2024, 6, 30, 23, 59, 58, tzinfo=timezone.utc)
        clock = DeterministicClock(start)

        assert clock.tick() == start + timedelta(seconds=1)
        clock.advance(1)
        assert clock.today() == date(2024, 7, 1)

    def test_set_date_moves_to_noon(self):
        clock = DeterministicClock()
        clock.advance(30)
        clock.set_date(date(2025, 1, 15))

        assert clock.now() == datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def test_system_clock_is_utc():
    assert SystemClock().now().tzinfo is timezone.utc
