"""Feed assembly: SQL pre-filtering plus in-process ranking.

The database narrows the candidate set (live, unmoderated, visible rows,
newest first, bounded by ``feed_candidate_window``); the pure selector in
``feed_selector`` then scores, orders and paginates. Scores are computed
against a single ``now`` per request and never persisted.

``total`` differs by ordering. Recency feeds report the SQL count of every
eligible post, independent of the cursor. Engagement feeds can only rank
the candidate window, so their total is the number of rankable candidates
and agrees with ``has_more``.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.post import Post, PostVisibility
from app.models.user import User
from app.services.feed_selector import (
    FeedFilters,
    FeedOrdering,
    FeedResult,
    PageRequest,
    decode_cursor,
    select_feed,
)
from app.services.follow import build_visibility_check, get_following_ids
from app.services.pagination import effective_page
from app.services.pet import get_owned_pet, get_owned_pet_ids

logger = logging.getLogger(__name__)


def _base_query(visibility_clause):
    return select(Post).where(
        Post.deleted_at.is_(None),
        Post.is_hidden.is_(False),
        visibility_clause,
    )


def _personalized_clause(own_pet_ids: set[int], following_ids: set[int]):
    return or_(
        Post.visibility == PostVisibility.PUBLIC.value,
        Post.pet_id.in_(sorted(own_pet_ids)),
        and_(
            Post.visibility == PostVisibility.FOLLOWERS.value,
            Post.pet_id.in_(sorted(following_ids)),
        ),
    )


async def get_feed(
    db: AsyncSession,
    *,
    ordering: FeedOrdering = FeedOrdering.ENGAGEMENT,
    user: User | None = None,
    pet_id: int | None = None,
    offset: int | None = 0,
    limit: int | None = None,
    cursor: str | None = None,
    include_total: bool = False,
    now: datetime | None = None,
) -> FeedResult:
    """Build one page of the explore (no pet) or personalized (pet) feed."""
    now = now or datetime.now(timezone.utc)
    offset, limit = effective_page(offset, limit)

    if pet_id is not None and user is not None:
        await get_owned_pet(db, pet_id, user)
        own_ids = await get_owned_pet_ids(db, user.id)
        following_ids = await get_following_ids(db, pet_id)
        filters = FeedFilters(
            ordering=ordering,
            public_only=False,
            can_view=build_visibility_check(own_ids, following_ids),
        )
        eligible = _base_query(_personalized_clause(own_ids, following_ids))
    else:
        filters = FeedFilters(ordering=ordering, public_only=True)
        eligible = _base_query(Post.visibility == PostVisibility.PUBLIC.value)

    base = eligible
    if ordering == FeedOrdering.RECENCY:
        decoded = decode_cursor(cursor)
        if decoded is not None:
            cursor_at, cursor_id = decoded
            base = base.where(
                or_(
                    Post.created_at < cursor_at,
                    and_(Post.created_at == cursor_at, Post.id > cursor_id),
                )
            )
        # One extra row tells the selector whether another page exists.
        fetch_limit = offset + limit + 1
    else:
        fetch_limit = max(settings.feed_candidate_window, offset + limit + 1)

    query = base.order_by(Post.created_at.desc(), Post.id.asc()).limit(fetch_limit)
    candidates = list((await db.execute(query)).scalars().all())

    result = select_feed(
        candidates,
        filters,
        PageRequest(offset=offset, limit=limit, cursor=cursor, include_total=include_total),
        now,
        default_limit=settings.feed_default_page_size,
        max_limit=settings.feed_max_page_size,
        max_offset=settings.feed_max_offset,
    )

    if include_total and ordering == FeedOrdering.RECENCY:
        count_q = select(func.count()).select_from(
            eligible.with_only_columns(Post.id).subquery()
        )
        result.total = (await db.execute(count_q)).scalar() or 0

    logger.debug(
        "Feed built: ordering=%s pet=%s candidates=%s returned=%s",
        ordering,
        pet_id,
        len(candidates),
        len(result.items),
    )
    return result
