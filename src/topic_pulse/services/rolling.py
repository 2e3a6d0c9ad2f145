"""Fixed-width rolling window counters.

A window is a list of counts, oldest first, with one entry per calendar unit
(an hour for the 24-slot day window, a day for the 7-slot week window). Time
moving forward shifts zero buckets in from the right and evicts from the left.
"""

from __future__ import annotations

import enum
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from topic_pulse.db.time import as_utc
from topic_pulse.services.scoring import coerce_count

__all__ = [
    "DAY_WINDOW",
    "RollingWindow",
    "TimeUnit",
    "WEEK_WINDOW",
    "elapsed_units",
    "left_pad",
    "record_hit",
    "truncate",
]


class TimeUnit(enum.Enum):
    """Calendar unit a bucket spans, valued in seconds."""

    HOUR = 3600
    DAY = 86400

    @property
    def delta(self) -> timedelta:
        return timedelta(seconds=self.value)


def truncate(moment: datetime, unit: TimeUnit) -> datetime:
    """Floor ``moment`` (converted to UTC) to the start of its unit."""
    moment = as_utc(moment)
    if unit is TimeUnit.DAY:
        return moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return moment.replace(minute=0, second=0, microsecond=0)


def elapsed_units(since: datetime, now: datetime, unit: TimeUnit) -> int:
    """Return how many unit boundaries lie between ``since`` and ``now``.

    Both ends are truncated first, so two moments inside the same hour are zero
    hours apart while 10:59 and 11:01 are one. The result is not capped; a
    ``now`` earlier than ``since`` counts as zero.
    """
    diff = truncate(now, unit) - truncate(since, unit)
    return max(0, diff // unit.delta)


def record_hit(
    counter: Sequence[object],
    maxlength: int,
    last_update_time: datetime | None,
    now: datetime,
    num: int,
    unit: TimeUnit = TimeUnit.HOUR,
) -> tuple[list[int], datetime]:
    """Advance a rolling window to ``now`` and add ``num`` to its newest bucket.

    Args:
        counter: Stored window, oldest first. Left untouched.
        maxlength: Number of buckets the window keeps.
        last_update_time: When the window was last advanced; ``None`` for a
            topic that has never been hit.
        now: Time of this hit.
        num: Increment for the newest bucket.
        unit: Width of one bucket.

    Returns:
        The new window and the timestamp to store as the last update.
    """
    if last_update_time is None:
        last_update_time = now
    steps = elapsed_units(last_update_time, now, unit)

    window: deque[int] = deque((coerce_count(v) for v in counter), maxlen=maxlength)
    # Past maxlength further appends only rotate zeros through a zeroed window.
    for _ in range(min(steps, maxlength)):
        window.append(0)

    if not window:
        window.append(num)
    else:
        window[-1] += num
    return list(window), now


def left_pad(counter: Sequence[object], length: int) -> list[int]:
    """Return ``counter`` left-padded with zeros to ``length``.

    Longer windows are returned as-is, never truncated.
    """
    values = [coerce_count(v) for v in counter]
    if len(values) >= length:
        return values
    return [0] * (length - len(values)) + values


@dataclass(frozen=True)
class RollingWindow:
    """A rolling window shape: how many buckets and how wide each is."""

    maxlength: int
    unit: TimeUnit

    def advance(
        self,
        counter: Sequence[object],
        last_update_time: datetime | None,
        now: datetime,
        num: int,
    ) -> list[int]:
        window, _ = record_hit(counter, self.maxlength, last_update_time, now, num, self.unit)
        return window

    def padded(self, counter: Sequence[object]) -> list[int]:
        return left_pad(counter, self.maxlength)


DAY_WINDOW = RollingWindow(maxlength=24, unit=TimeUnit.HOUR)
WEEK_WINDOW = RollingWindow(maxlength=7, unit=TimeUnit.DAY)
