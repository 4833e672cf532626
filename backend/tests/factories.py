"""Builders for transient ORM objects used across the test suite."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

from app.models.pet import Pet
from app.models.post import Post
from app.models.user import User

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_user(id: int = 1) -> User:
    return User(id=id, email=f"user{id}@example.com", username=f"user{id}", is_active=True)


def make_pet(id: int = 1, owner_id: int = 1, name: str = "Rex") -> Pet:
    return Pet(
        id=id,
        owner_id=owner_id,
        name=name,
        species="dog",
        followers_count=0,
        following_count=0,
        posts_count=0,
        created_at=NOW,
    )


def make_post(
    id: int,
    *,
    likes: int = 0,
    comments: int = 0,
    shares: int = 0,
    age_hours: float = 0.0,
    pet_id: int = 1,
    visibility: str = "public",
    is_hidden: bool = False,
    deleted_at: datetime | None = None,
    now: datetime = NOW,
) -> Post:
    return Post(
        id=id,
        pet_id=pet_id,
        caption=f"post {id}",
        visibility=visibility,
        likes_count=likes,
        comments_count=comments,
        shares_count=shares,
        is_hidden=is_hidden,
        deleted_at=deleted_at,
        created_at=now - timedelta(hours=age_hours),
    )


def scalar_result(value=None) -> MagicMock:
    """Result for queries read with scalar_one_or_none() / scalar()."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.scalar.return_value = value
    return result


def scalars_result(items: list) -> MagicMock:
    """Result for queries read with .scalars().all()."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = items
    return result


def mock_db(*results) -> AsyncMock:
    """AsyncSession mock whose execute() returns *results* in order."""
    db = AsyncMock()
    db.add = MagicMock()
    if results:
        db.execute = AsyncMock(side_effect=list(results))
    else:
        db.execute = AsyncMock(return_value=scalar_result(None))
    return db
