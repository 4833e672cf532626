"""Engagement score: weighted interactions with exponential time decay.

    score = (likes * 1 + comments * 3 + shares * 5) * 0.95 ** (hours_old / 24)

The score is a ranking key, not a stored value. It must be recomputed with
the current instant on every ranking request because the decay term moves
with wall-clock time.
"""

from datetime import datetime, timezone
from typing import Protocol

LIKE_WEIGHT = 1
COMMENT_WEIGHT = 3
SHARE_WEIGHT = 5

DECAY_BASE = 0.95
DECAY_PERIOD_HOURS = 24.0

_SECONDS_PER_HOUR = 3600.0


class Scorable(Protocol):
    likes_count: int
    comments_count: int
    shares_count: int
    created_at: datetime


def as_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def hours_between(created_at: datetime, now: datetime) -> float:
    """Elapsed hours from created_at to now, never negative."""
    elapsed = (as_utc(now) - as_utc(created_at)).total_seconds() / _SECONDS_PER_HOUR
    return max(0.0, elapsed)


def decay_factor(hours_old: float) -> float:
    return DECAY_BASE ** (max(0.0, hours_old) / DECAY_PERIOD_HOURS)


def compute_engagement_score(
    likes_count: int,
    comments_count: int,
    shares_count: int,
    created_at: datetime,
    now: datetime,
) -> float:
    """Compute the decaying engagement score for a single post.

    A *now* earlier than *created_at* (clock skew) is treated as zero age so
    the decay factor never exceeds 1.
    """
    raw = (
        likes_count * LIKE_WEIGHT
        + comments_count * COMMENT_WEIGHT
        + shares_count * SHARE_WEIGHT
    )
    return raw * decay_factor(hours_between(created_at, now))


def score_post(post: Scorable, now: datetime) -> float:
    """Apply compute_engagement_score to anything carrying the post counters."""
    return compute_engagement_score(
        post.likes_count or 0,
        post.comments_count or 0,
        post.shares_count or 0,
        post.created_at,
        now,
    )
