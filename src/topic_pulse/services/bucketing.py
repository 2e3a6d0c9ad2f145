"""Bucket reply timestamps into fixed calendar windows."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from topic_pulse.services.rolling import TimeUnit, elapsed_units, truncate

__all__ = ["bucket_replies", "horizon_start"]


def horizon_start(now: datetime, horizon_units: int, unit: TimeUnit) -> datetime:
    """Return the start of the oldest bucket of a window ending at ``now``.

    A 24-hour window at 13:25 starts at 14:00 the previous day, so every reply
    created at or after this moment has a bucket.
    """
    return truncate(now, unit) - unit.delta * (horizon_units - 1)


def bucket_replies(
    created_ats: Iterable[datetime],
    horizon_units: int,
    unit: TimeUnit,
    now: datetime,
) -> list[int]:
    """Count replies per unit over the ``horizon_units`` most recent units.

    Buckets are addressed by how many units back from the current one a reply
    falls, so nothing depends on calendar labels. The caller is expected to
    pass replies already limited to the window; stray timestamps (in the
    future or older than the window) have no bucket and are skipped.

    Returns:
        ``horizon_units`` counts, oldest first; the last entry is the unit
        containing ``now``.
    """
    counts = [0] * horizon_units
    current = truncate(now, unit)
    for created_at in created_ats:
        if truncate(created_at, unit) > current:
            continue
        offset = elapsed_units(created_at, now, unit)
        if offset < horizon_units:
            counts[horizon_units - 1 - offset] += 1
    return counts
