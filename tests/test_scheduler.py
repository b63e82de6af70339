from datetime import datetime, timezone

from services.scheduler import next_run_time, seconds_until


def at(hour, minute=0, second=0, day=19):
    return datetime(2026, 10, day, hour, minute, second, tzinfo=timezone.utc)


def test_before_the_hour_runs_same_day():
    assert next_run_time(8, now=at(6, 30)) == at(8)


def test_exactly_on_the_hour_rolls_to_next_day():
    assert next_run_time(8, now=at(8)) == at(8, day=20)


def test_after_the_hour_rolls_to_next_day():
    assert next_run_time(8, now=at(8, 0, 1)) == at(8, day=20)
    assert next_run_time(8, now=at(23, 59)) == at(8, day=20)


def test_seconds_until_future_moment():
    assert seconds_until(at(8), now=at(6, 30)) == 90 * 60


def test_seconds_until_past_moment_is_zero():
    assert seconds_until(at(6), now=at(8)) == 0.0
