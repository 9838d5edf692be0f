from datetime import datetime, timedelta, timezone

from datetime_utils import UTC, ensure_utc, epoch_ms_to_rfc3339, from_epoch_ms, now_ms, to_rfc3339_utc


def test_epoch_ms_round_trip_to_rfc3339():
    assert epoch_ms_to_rfc3339(1_700_000_000_000) == "2023-11-14T22:13:20Z"
    assert epoch_ms_to_rfc3339(None) is None


def test_from_epoch_ms_is_utc_aware():
    value = from_epoch_ms(0)
    assert value == datetime(1970, 1, 1, tzinfo=UTC)


def test_ensure_utc_handles_naive_and_offset_values():
    naive = datetime(2024, 5, 1, 7, 0)
    assert ensure_utc(naive).tzinfo is UTC

    plus_three = datetime(2024, 5, 1, 10, 0, tzinfo=timezone(timedelta(hours=3)))
    assert to_rfc3339_utc(plus_three) == "2024-05-01T07:00:00Z"


def test_now_ms_tracks_wall_clock():
    before = int(datetime.now(UTC).timestamp() * 1000)
    value = now_ms()
    assert before <= value <= before + 5_000
