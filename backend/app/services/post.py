import logging
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import CommentCreate, PostCreate
from app.models.comment import Comment
from app.models.like import Like
from app.models.pet import Pet
from app.models.post import Post, PostVisibility
from app.models.post_media import PostMedia
from app.models.user import User
from app.services import counters
from app.services.follow import build_visibility_check, get_following_ids
from app.services.pet import get_owned_pet, get_owned_pet_ids

logger = logging.getLogger(__name__)


async def create_post(db: AsyncSession, user: User, data: PostCreate) -> Post:
    pet = await get_owned_pet(db, data.pet_id, user)

    post = Post(
        pet_id=pet.id,
        caption=data.caption,
        visibility=data.visibility.value,
        likes_count=0,
        comments_count=0,
        shares_count=0,
        is_hidden=False,
        media=[
            PostMedia(
                media_type=item.media_type.value,
                url=item.url,
                thumbnail_url=item.thumbnail_url,
                width=item.width,
                height=item.height,
                duration_ms=item.duration_ms,
                mime_type=item.mime_type,
                position=position,
            )
            for position, item in enumerate(data.media)
        ],
    )
    db.add(post)
    await counters.increment(db, Pet.posts_count, pet.id)
    await db.commit()
    await db.refresh(post)
    logger.info("Post %s created by pet %s (%s media)", post.id, pet.id, len(data.media))
    return post


async def get_post(db: AsyncSession, post_id: int) -> Post:
    """Return a live post; soft-deleted and moderated posts are 404."""
    result = await db.execute(
        select(Post).where(
            Post.id == post_id,
            Post.deleted_at.is_(None),
            Post.is_hidden.is_(False),
        )
    )
    post = result.scalar_one_or_none()
    if not post:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Post not found"
        )
    return post


async def get_post_for_viewer(
    db: AsyncSession,
    post_id: int,
    user: User | None = None,
    viewer_pet_id: int | None = None,
) -> Post:
    """Return the post if the viewer may see it; hidden-from-viewer is a 404."""
    post = await get_post(db, post_id)
    if post.visibility == PostVisibility.PUBLIC:
        return post

    own_ids: set[int] = set()
    following: set[int] = set()
    if user is not None:
        own_ids = await get_owned_pet_ids(db, user.id)
        if viewer_pet_id is not None and viewer_pet_id in own_ids:
            following = await get_following_ids(db, viewer_pet_id)

    if not build_visibility_check(own_ids, following)(post):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Post not found"
        )
    return post


async def delete_post(db: AsyncSession, user: User, post_id: int) -> None:
    post = await get_post(db, post_id)
    await get_owned_pet(db, post.pet_id, user)

    post.deleted_at = datetime.now(timezone.utc)
    await counters.decrement(db, Pet.posts_count, post.pet_id)
    await db.commit()
    logger.info("Post %s deleted by user %s", post_id, user.id)


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------


async def like_post(db: AsyncSession, user: User, post_id: int, pet_id: int) -> Post:
    await get_owned_pet(db, pet_id, user)
    post = await get_post_for_viewer(db, post_id, user, pet_id)

    result = await db.execute(
        select(Like).where(Like.pet_id == pet_id, Like.post_id == post_id)
    )
    if result.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Post already liked"
        )

    db.add(Like(pet_id=pet_id, post_id=post_id))
    try:
        await counters.increment(db, Post.likes_count, post_id)
        await db.commit()
    except IntegrityError:
        # A concurrent like by the same pet won the unique constraint.
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Post already liked"
        )
    await db.refresh(post)
    return post


async def unlike_post(db: AsyncSession, user: User, post_id: int, pet_id: int) -> Post:
    await get_owned_pet(db, pet_id, user)
    post = await get_post_for_viewer(db, post_id, user, pet_id)

    result = await db.execute(
        select(Like).where(Like.pet_id == pet_id, Like.post_id == post_id)
    )
    like = result.scalar_one_or_none()
    if like is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Post is not liked"
        )

    await db.delete(like)
    await counters.decrement(db, Post.likes_count, post_id)
    await db.commit()
    await db.refresh(post)
    return post


async def share_post(db: AsyncSession, user: User, post_id: int, pet_id: int) -> Post:
    await get_owned_pet(db, pet_id, user)
    post = await get_post_for_viewer(db, post_id, user, pet_id)

    await counters.increment(db, Post.shares_count, post_id)
    await db.commit()
    await db.refresh(post)
    logger.info("Post %s shared by pet %s", post_id, pet_id)
    return post


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


async def add_comment(
    db: AsyncSession, user: User, post_id: int, data: CommentCreate
) -> Comment:
    await get_owned_pet(db, data.pet_id, user)
    await get_post_for_viewer(db, post_id, user, data.pet_id)

    if data.parent_id is not None:
        result = await db.execute(
            select(Comment).where(
                Comment.id == data.parent_id, Comment.deleted_at.is_(None)
            )
        )
        parent = result.scalar_one_or_none()
        if parent is None or parent.post_id != post_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Parent comment does not belong to this post",
            )

    comment = Comment(
        post_id=post_id,
        pet_id=data.pet_id,
        parent_id=data.parent_id,
        content=data.content,
        is_hidden=False,
    )
    db.add(comment)
    await counters.increment(db, Post.comments_count, post_id)
    await db.commit()
    await db.refresh(comment)
    return comment


async def delete_comment(
    db: AsyncSession, user: User, post_id: int, comment_id: int
) -> None:
    """Soft-delete a comment; allowed for the comment author and the post owner."""
    post = await get_post(db, post_id)

    result = await db.execute(
        select(Comment).where(
            Comment.id == comment_id,
            Comment.post_id == post_id,
            Comment.deleted_at.is_(None),
        )
    )
    comment = result.scalar_one_or_none()
    if comment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found"
        )

    own_ids = await get_owned_pet_ids(db, user.id)
    if comment.pet_id not in own_ids and post.pet_id not in own_ids:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only delete your own comments",
        )

    comment.deleted_at = datetime.now(timezone.utc)
    await counters.decrement(db, Post.comments_count, post_id)
    await db.commit()
