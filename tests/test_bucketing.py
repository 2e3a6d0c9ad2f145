"""Tests for bucketing reply timestamps into day and week windows."""

from datetime import UTC, datetime, timedelta, timezone

from topic_pulse.services.bucketing import bucket_replies, horizon_start
from topic_pulse.services.rolling import TimeUnit

NOW = datetime(2026, 3, 10, 12, 30, tzinfo=UTC)


def test_empty_reply_set_is_zero_filled() -> None:
    assert bucket_replies([], 24, TimeUnit.HOUR, NOW) == [0] * 24
    assert bucket_replies([], 7, TimeUnit.DAY, NOW) == [0] * 7


def test_hourly_buckets_are_oldest_first() -> None:
    created = [
        NOW - timedelta(minutes=10),  # current hour
        NOW - timedelta(minutes=20),  # current hour
        NOW - timedelta(minutes=50),  # 11:40, previous hour
        NOW - timedelta(hours=23),  # 13:30 yesterday, oldest bucket
    ]
    counts = bucket_replies(created, 24, TimeUnit.HOUR, NOW)
    assert len(counts) == 24
    assert counts[-1] == 2
    assert counts[-2] == 1
    assert counts[0] == 1
    assert sum(counts) == 4


def test_daily_buckets_follow_utc_calendar_days() -> None:
    created = [
        datetime(2026, 3, 10, 0, 5, tzinfo=UTC),
        datetime(2026, 3, 9, 23, 55, tzinfo=UTC),
        datetime(2026, 3, 4, 8, 0, tzinfo=UTC),
    ]
    assert bucket_replies(created, 7, TimeUnit.DAY, NOW) == [1, 0, 0, 0, 0, 1, 1]


def test_daily_buckets_across_month_boundary() -> None:
    now = datetime(2026, 3, 2, 6, 0, tzinfo=UTC)
    created = [
        datetime(2026, 2, 28, 12, 0, tzinfo=UTC),
        datetime(2026, 3, 1, 12, 0, tzinfo=UTC),
        datetime(2026, 3, 2, 1, 0, tzinfo=UTC),
    ]
    assert bucket_replies(created, 7, TimeUnit.DAY, now) == [0, 0, 0, 0, 1, 1, 1]


def test_same_calendar_label_a_year_apart_is_not_counted() -> None:
    created = [NOW - timedelta(days=365), NOW]
    assert bucket_replies(created, 7, TimeUnit.DAY, NOW) == [0] * 6 + [1]


def test_timestamps_outside_the_window_are_skipped() -> None:
    created = [NOW + timedelta(hours=2), NOW - timedelta(hours=24)]
    assert bucket_replies(created, 24, TimeUnit.HOUR, NOW) == [0] * 24


def test_timestamps_are_converted_to_utc() -> None:
    tokyo = timezone(timedelta(hours=9))
    created = [datetime(2026, 3, 10, 21, 15, tzinfo=tokyo)]  # 12:15 UTC
    naive = [datetime(2026, 3, 10, 11, 5)]  # taken as UTC
    assert bucket_replies(created, 24, TimeUnit.HOUR, NOW)[-1] == 1
    assert bucket_replies(naive, 24, TimeUnit.HOUR, NOW)[-2] == 1


def test_bucketing_is_idempotent() -> None:
    created = [NOW - timedelta(hours=h, minutes=7) for h in (0, 1, 1, 5, 17)]
    first = bucket_replies(created, 24, TimeUnit.HOUR, NOW)
    second = bucket_replies(created, 24, TimeUnit.HOUR, NOW)
    assert first == second


def test_horizon_start_aligns_to_oldest_bucket() -> None:
    assert horizon_start(NOW, 24, TimeUnit.HOUR) == datetime(2026, 3, 9, 13, 0, tzinfo=UTC)
    assert horizon_start(NOW, 7, TimeUnit.DAY) == datetime(2026, 3, 4, tzinfo=UTC)
