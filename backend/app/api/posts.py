from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import (
    ActingPetRequest,
    CommentCreate,
    CommentResponse,
    PostCreate,
    PostResponse,
)
from app.core.deps import get_db
from app.core.security import get_current_user, get_optional_user
from app.models.user import User
from app.services import post as post_svc

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    data: PostCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await post_svc.create_post(db, user, data)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: int,
    as_pet: int | None = Query(default=None),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await post_svc.get_post_for_viewer(db, post_id, user, as_pet)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await post_svc.delete_post(db, user, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Interactions
# ---------------------------------------------------------------------------


@router.post("/{post_id}/like", response_model=PostResponse)
async def like_post(
    post_id: int,
    data: ActingPetRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await post_svc.like_post(db, user, post_id, data.pet_id)


@router.delete("/{post_id}/like", response_model=PostResponse)
async def unlike_post(
    post_id: int,
    pet_id: int = Query(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await post_svc.unlike_post(db, user, post_id, pet_id)


@router.post("/{post_id}/share", response_model=PostResponse)
async def share_post(
    post_id: int,
    data: ActingPetRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await post_svc.share_post(db, user, post_id, data.pet_id)


@router.post(
    "/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    post_id: int,
    data: CommentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await post_svc.add_comment(db, user, post_id, data)


@router.delete("/{post_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    post_id: int,
    comment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await post_svc.delete_comment(db, user, post_id, comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
