from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import FeedItem, FeedResponse, PostResponse
from app.core.deps import get_db
from app.core.security import get_optional_user
from app.models.user import User
from app.services import feed as feed_svc
from app.services.feed_selector import FeedOrdering, FeedResult

router = APIRouter(prefix="/feed", tags=["feed"])


def _to_response(result: FeedResult, ordering: FeedOrdering) -> FeedResponse:
    items = [
        FeedItem(
            **PostResponse.model_validate(ranked.post).model_dump(),
            engagement_score=ranked.score,
        )
        for ranked in result.items
    ]
    return FeedResponse(
        ordering=ordering,
        items=items,
        offset=result.offset,
        limit=result.limit,
        has_more=result.has_more,
        total=result.total,
        next_cursor=result.next_cursor,
    )


@router.get("", response_model=FeedResponse)
async def get_feed(
    ordering: FeedOrdering = Query(default=FeedOrdering.ENGAGEMENT),
    pet_id: int | None = Query(default=None, description="Acting pet for a personalized feed"),
    offset: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    cursor: str | None = Query(default=None),
    include_total: bool = Query(default=False),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    if pet_id is not None and user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required for a personalized feed",
        )
    result = await feed_svc.get_feed(
        db,
        ordering=ordering,
        user=user,
        pet_id=pet_id,
        offset=offset,
        limit=limit,
        cursor=cursor,
        include_total=include_total,
    )
    return _to_response(result, ordering)


@router.get("/explore", response_model=FeedResponse)
async def get_explore_feed(
    offset: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    result = await feed_svc.get_feed(
        db, ordering=FeedOrdering.ENGAGEMENT, offset=offset, limit=limit
    )
    return _to_response(result, FeedOrdering.ENGAGEMENT)
