from datetime import timedelta

import pytest

from broker_mock.operations import (
    CREATE,
    IN_PROGRESS,
    MAX_DELAY_SECONDS,
    SUCCEEDED,
    UPDATE,
    OperationTracker,
    coerce_delay,
)


@pytest.fixture
def tracker(clock):
    return OperationTracker(clock, default_delay=1.0)


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, 1.0),
        ("5", 1.0),
        (True, 1.0),
        ([3], 1.0),
        (0, 0.0),
        (3, 3.0),
        (2.5, 2.5),
        (-4, 0.0),
        (float("nan"), 1.0),
        (float("inf"), 1.0),
        (1e300, MAX_DELAY_SECONDS),
        (10**400, MAX_DELAY_SECONDS),
        (-(10**400), 0.0),
    ],
)
def test_coerce_delay(value, expected):
    assert coerce_delay(value, 1.0) == expected


def test_untracked_id_is_succeeded(tracker):
    status = tracker.poll("never-seen")

    assert status.state == SUCCEEDED
    assert status.as_dict() == {"state": "succeeded"}


def test_in_progress_until_delay_elapses(tracker, clock):
    tracker.schedule("i1", CREATE, 5)

    assert tracker.poll("i1").state == IN_PROGRESS
    clock.advance(4.9)
    status = tracker.poll("i1")
    assert status.as_dict() == {"state": "in progress", "description": "The operation is in progress..."}

    clock.advance(0.1)
    status = tracker.poll("i1")
    assert status.as_dict() == {"state": "succeeded", "description": "The operation has finished!"}
    # Retired by the poll above.
    assert tracker.pending("i1") is None
    assert tracker.poll("i1").as_dict() == {"state": "succeeded"}


def test_zero_delay_completes_on_first_poll(tracker):
    tracker.schedule("i1", UPDATE, 0)

    assert tracker.poll("i1").state == SUCCEEDED
    assert tracker.pending("i1") is None


def test_default_delay_when_missing(tracker, clock):
    pending = tracker.schedule("i1", CREATE)

    assert (pending.completes_at - clock()).total_seconds() == 1.0


def test_retirement_clears_both_classes(tracker, clock):
    tracker.schedule("i1", CREATE, 1)
    tracker.schedule("i1", UPDATE, 1)
    clock.advance(2)

    assert tracker.poll("i1").state == SUCCEEDED
    assert tracker.snapshot() == []


def test_is_running_and_forget(tracker, clock):
    tracker.schedule("i1", CREATE, 2)
    assert tracker.is_running("i1")

    clock.advance(2)
    assert not tracker.is_running("i1")
    assert tracker.pending("i1") is not None

    tracker.forget("i1")
    assert tracker.pending("i1") is None


def test_unknown_operation_class(tracker):
    with pytest.raises(ValueError):
        tracker.schedule("i1", "delete", 1)


def test_completion_time_stays_in_range_for_huge_delays(tracker, clock):
    assert tracker.completion_time(1e300) == clock() + timedelta(seconds=MAX_DELAY_SECONDS)
    assert tracker.completion_time(float("nan")) == clock() + timedelta(seconds=1)


def test_schedule_with_explicit_completion_time(tracker, clock):
    at = clock() + timedelta(seconds=30)

    pending = tracker.schedule("i1", CREATE, 5, completes_at=at)

    assert pending.completes_at == at
