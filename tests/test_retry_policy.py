from models.pending_op import PendingOperation
from services.retry_policy import backoff_delay_ms, is_due, is_exhausted, replay_order


def _op(priority, timestamp, retry_count=0):
    return PendingOperation(
        id=f"{priority}-{timestamp}",
        endpoint="/api/a",
        method="POST",
        body={},
        timestamp=timestamp,
        retry_count=retry_count,
        priority=priority,
    )


def test_backoff_doubles_per_retry():
    assert [backoff_delay_ms(n) for n in range(5)] == [1000, 2000, 4000, 8000, 16000]


def test_fresh_operations_are_always_due():
    assert is_due(_op("low", 5_000), now=5_000) is True


def test_retried_operation_waits_for_backoff():
    op = _op("low", 10_000, retry_count=2)
    assert is_due(op, now=11_000) is False
    assert is_due(op, now=13_999) is False
    assert is_due(op, now=14_000) is True


def test_exhaustion_at_ceiling():
    assert is_exhausted(_op("low", 0, retry_count=4)) is False
    assert is_exhausted(_op("low", 0, retry_count=5)) is True


def test_replay_order_priority_then_age():
    ops = [_op("low", 1), _op("medium", 3), _op("high", 5), _op("medium", 2), _op("high", 4)]

    ordered = replay_order(ops)

    assert [op.id for op in ordered] == ["high-4", "high-5", "medium-2", "medium-3", "low-1"]
