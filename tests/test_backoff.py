from datetime import timedelta

from logship.core.backoff import ExponentialBackoffSchedule


def _schedule(**overrides) -> ExponentialBackoffSchedule:
    params = {
        "period": timedelta(seconds=2),
        "minimum_backoff": timedelta(seconds=5),
        "maximum_backoff": timedelta(minutes=10),
    }
    params.update(overrides)
    return ExponentialBackoffSchedule(**params)


def test_healthy_interval_is_period():
    assert _schedule().next_interval == timedelta(seconds=2)


def test_first_failure_waits_minimum_backoff():
    schedule = _schedule()
    schedule.mark_failure()
    assert schedule.next_interval == timedelta(seconds=5)


def test_failures_double_the_wait():
    schedule = _schedule()
    intervals = []
    for _ in range(4):
        schedule.mark_failure()
        intervals.append(schedule.next_interval.total_seconds())
    assert intervals == [5, 10, 20, 40]


def test_wait_is_capped_at_maximum():
    schedule = _schedule()
    for _ in range(50):
        schedule.mark_failure()
    assert schedule.next_interval == timedelta(minutes=10)


def test_many_failures_do_not_overflow():
    schedule = _schedule()
    for _ in range(10_000):
        schedule.mark_failure()
    assert schedule.next_interval == timedelta(minutes=10)


def test_success_resets():
    schedule = _schedule()
    schedule.mark_failure()
    schedule.mark_failure()
    schedule.mark_success()
    assert schedule.failures_since_success == 0
    assert schedule.next_interval == timedelta(seconds=2)


def test_period_longer_than_minimum_backoff():
    schedule = _schedule(period=timedelta(seconds=30))
    schedule.mark_failure()
    assert schedule.next_interval == timedelta(seconds=30)
    schedule.mark_failure()
    assert schedule.next_interval == timedelta(seconds=60)


def test_never_shorter_than_period():
    schedule = _schedule(period=timedelta(minutes=20), maximum_backoff=timedelta(minutes=10))
    schedule.mark_failure()
    assert schedule.next_interval == timedelta(minutes=20)
