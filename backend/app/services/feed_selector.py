"""Feed selection: pure logic, no DB dependency.

Filters a candidate set down to the posts a viewer may see, orders it by
engagement score or by recency, and cuts out the requested page.
Ordering is fully deterministic: ties fall back to created_at (newest
first) and then to id (ascending).
"""

import base64
import binascii
import heapq
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from app.models.post import PostVisibility
from app.services.scoring import as_utc, score_post

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
MAX_OFFSET = 10_000


class FeedOrdering(StrEnum):
    ENGAGEMENT = "engagement"
    RECENCY = "recency"


@dataclass(frozen=True)
class FeedFilters:
    ordering: FeedOrdering = FeedOrdering.ENGAGEMENT
    public_only: bool = True
    # Personalized feeds pass a visibility check backed by the follow graph.
    can_view: Callable[[Any], bool] | None = None


@dataclass(frozen=True)
class PageRequest:
    offset: int = 0
    limit: int = DEFAULT_PAGE_SIZE
    cursor: str | None = None
    include_total: bool = False


@dataclass(frozen=True)
class RankedPost:
    post: Any
    score: float


@dataclass
class FeedResult:
    items: list[RankedPost] = field(default_factory=list)
    has_more: bool = False
    total: int | None = None
    next_cursor: str | None = None
    # Effective page parameters the result was cut with.
    offset: int = 0
    limit: int = DEFAULT_PAGE_SIZE


def normalize_page(
    offset: int | None,
    limit: int | None,
    *,
    default_limit: int = DEFAULT_PAGE_SIZE,
    max_limit: int = MAX_PAGE_SIZE,
    max_offset: int = MAX_OFFSET,
) -> tuple[int, int]:
    """Clamp pagination input to safe values instead of rejecting it."""
    if offset is None or offset < 0:
        offset = 0
    if limit is None or limit <= 0:
        limit = default_limit
    return min(offset, max_offset), min(limit, max_limit)


# ---------------------------------------------------------------------------
# Cursor encoding
# ---------------------------------------------------------------------------


def encode_cursor(created_at: datetime, post_id: int) -> str:
    raw = f"{as_utc(created_at).isoformat()}|{post_id}"
    return base64.urlsafe_b64encode(raw.encode()).decode().rstrip("=")


def decode_cursor(cursor: str | None) -> tuple[datetime, int] | None:
    """Decode a recency cursor; malformed input yields None (treated as absent)."""
    if not cursor:
        return None
    padded = cursor + "=" * (-len(cursor) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode()).decode()
        ts, _, post_id = raw.partition("|")
        return as_utc(datetime.fromisoformat(ts)), int(post_id)
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Filtering & ordering
# ---------------------------------------------------------------------------


def is_eligible(post: Any, filters: FeedFilters) -> bool:
    if post.deleted_at is not None or post.is_hidden:
        return False
    if post.visibility == PostVisibility.PUBLIC:
        return True
    if filters.public_only or filters.can_view is None:
        return False
    return bool(filters.can_view(post))


def _recency_key(post: Any) -> tuple[float, int]:
    return (-as_utc(post.created_at).timestamp(), post.id)


def _cursor_key(cursor: tuple[datetime, int]) -> tuple[float, int]:
    created_at, post_id = cursor
    return (-created_at.timestamp(), post_id)


def select_feed(
    candidates: Sequence[Any],
    filters: FeedFilters,
    page: PageRequest,
    now: datetime,
    *,
    default_limit: int = DEFAULT_PAGE_SIZE,
    max_limit: int = MAX_PAGE_SIZE,
    max_offset: int = MAX_OFFSET,
) -> FeedResult:
    """Return one page of the feed built from *candidates*.

    Scores are computed against *now*; the caller takes it once per request
    so every post in a ranking is decayed to the same instant.
    """
    offset, limit = normalize_page(
        page.offset,
        page.limit,
        default_limit=default_limit,
        max_limit=max_limit,
        max_offset=max_offset,
    )
    eligible = [p for p in candidates if is_eligible(p, filters)]

    if filters.ordering == FeedOrdering.RECENCY:
        cursor = decode_cursor(page.cursor)
        if cursor is not None:
            after = _cursor_key(cursor)
            eligible = [p for p in eligible if _recency_key(p) > after]
        keyed = [(_recency_key(p), p) for p in eligible]
    else:
        keyed = []
        for p in eligible:
            score = score_post(p, now)
            keyed.append(((-score, *_recency_key(p)), p))

    total = len(keyed)
    if page.include_total:
        ordered = sorted(keyed, key=lambda kp: kp[0])
    else:
        # Only the head of the ranking is needed when no total is requested.
        ordered = heapq.nsmallest(offset + limit + 1, keyed, key=lambda kp: kp[0])

    window = ordered[offset : offset + limit]
    has_more = total > offset + limit

    if filters.ordering == FeedOrdering.RECENCY:
        items = [RankedPost(post=p, score=score_post(p, now)) for _, p in window]
    else:
        items = [RankedPost(post=p, score=-key[0]) for key, p in window]

    next_cursor = None
    if has_more and items and filters.ordering == FeedOrdering.RECENCY:
        last = items[-1].post
        next_cursor = encode_cursor(last.created_at, last.id)

    return FeedResult(
        items=items,
        has_more=has_more,
        total=total if page.include_total else None,
        next_cursor=next_cursor,
        offset=offset,
        limit=limit,
    )
