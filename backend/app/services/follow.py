import logging
from collections.abc import Callable
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import cache_delete, cache_get_json, cache_set_json, make_cache_key
from app.core.config import settings
from app.models.follow import Follow
from app.models.pet import Pet
from app.models.post import PostVisibility
from app.models.user import User
from app.services import counters
from app.services.pagination import Page, paginate
from app.services.pet import get_owned_pet, get_pet

logger = logging.getLogger(__name__)

_FOLLOWING_CACHE_PREFIX = "following"


def _following_key(pet_id: int) -> str:
    return make_cache_key(_FOLLOWING_CACHE_PREFIX, pet_id)


async def get_following_ids(db: AsyncSession, pet_id: int) -> set[int]:
    """Ids of the pets *pet_id* follows (Redis-cached, short TTL)."""
    key = _following_key(pet_id)
    cached = await cache_get_json(key)
    if cached is not None:
        return set(cached)

    result = await db.execute(
        select(Follow.following_id).where(Follow.follower_id == pet_id)
    )
    ids = set(result.scalars().all())
    await cache_set_json(key, sorted(ids), ttl=settings.cache_following_ttl)
    return ids


def build_visibility_check(
    own_pet_ids: set[int], following_ids: set[int]
) -> Callable[[Any], bool]:
    """Return a predicate telling whether a viewer may see a post.

    Owners see all their posts; followers-only posts need a follow edge;
    public posts are visible to everyone.
    """

    def can_view(post: Any) -> bool:
        if post.pet_id in own_pet_ids:
            return True
        if post.visibility == PostVisibility.PUBLIC:
            return True
        if post.visibility == PostVisibility.FOLLOWERS:
            return post.pet_id in following_ids
        return False

    return can_view


async def follow_pet(
    db: AsyncSession, user: User, follower_id: int, following_id: int
) -> Follow:
    await get_owned_pet(db, follower_id, user)

    if follower_id == following_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A pet cannot follow itself",
        )

    await get_pet(db, following_id)

    result = await db.execute(
        select(Follow).where(
            Follow.follower_id == follower_id, Follow.following_id == following_id
        )
    )
    if result.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Already following this pet",
        )

    follow = Follow(follower_id=follower_id, following_id=following_id)
    db.add(follow)
    try:
        await counters.increment(db, Pet.following_count, follower_id)
        await counters.increment(db, Pet.followers_count, following_id)
        await db.commit()
    except IntegrityError:
        # A concurrent follow of the same pair won the unique constraint.
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Already following this pet",
        )
    await cache_delete(_following_key(follower_id))

    logger.info("Pet %s followed %s", follower_id, following_id)
    return follow


async def unfollow_pet(
    db: AsyncSession, user: User, follower_id: int, following_id: int
) -> None:
    await get_owned_pet(db, follower_id, user)

    result = await db.execute(
        select(Follow).where(
            Follow.follower_id == follower_id, Follow.following_id == following_id
        )
    )
    follow = result.scalar_one_or_none()
    if follow is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not following this pet",
        )

    await db.delete(follow)
    await counters.decrement(db, Pet.following_count, follower_id)
    await counters.decrement(db, Pet.followers_count, following_id)
    await db.commit()
    await cache_delete(_following_key(follower_id))

    logger.info("Pet %s unfollowed %s", follower_id, following_id)


# ---------------------------------------------------------------------------
# Follow lists
# ---------------------------------------------------------------------------


async def list_followers(
    db: AsyncSession, pet_id: int, offset: int | None = 0, limit: int | None = None
) -> Page:
    """Pets following *pet_id*, most recent follow first."""
    await get_pet(db, pet_id)
    base = (
        select(Pet)
        .join(Follow, Follow.follower_id == Pet.id)
        .where(Follow.following_id == pet_id, Pet.deleted_at.is_(None))
    )
    return await paginate(
        db, base, (Follow.created_at.desc(), Follow.id.asc()), offset, limit
    )


async def list_following(
    db: AsyncSession, pet_id: int, offset: int | None = 0, limit: int | None = None
) -> Page:
    """Pets *pet_id* follows, most recent follow first."""
    await get_pet(db, pet_id)
    base = (
        select(Pet)
        .join(Follow, Follow.following_id == Pet.id)
        .where(Follow.follower_id == pet_id, Pet.deleted_at.is_(None))
    )
    return await paginate(
        db, base, (Follow.created_at.desc(), Follow.id.asc()), offset, limit
    )
