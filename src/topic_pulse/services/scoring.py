"""Recency-weighted popularity score."""

from __future__ import annotations

from collections.abc import Sequence

DEFAULT_REPLY_WEIGHT: int = 3

__all__ = ["DEFAULT_REPLY_WEIGHT", "coerce_count", "score"]


def coerce_count(value: object) -> int:
    """Return ``value`` as an int, treating blanks and junk as zero."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return 0


def score(
    visit_counts: Sequence[object],
    reply_counts: Sequence[object],
    reply_weight: int = DEFAULT_REPLY_WEIGHT,
) -> int:
    """Combine per-bucket visits and replies into a single popularity score.

    Both sequences are oldest first. Bucket ``i`` contributes
    ``(visits + reply_weight * replies) * (i + 1)``, so the newest bucket
    carries the largest multiplier.

    Args:
        visit_counts: Page views per bucket.
        reply_counts: Replies per bucket.
        reply_weight: How many visits a single reply is worth.

    Returns:
        The score, or 0 when the sequences differ in length.
    """
    if len(visit_counts) != len(reply_counts):
        return 0

    total = 0
    for position, (visits, replies) in enumerate(zip(visit_counts, reply_counts), start=1):
        total += (coerce_count(visits) + reply_weight * coerce_count(replies)) * position
    return total
