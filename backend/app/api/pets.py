from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import (
    PaginatedPetResponse,
    PetCreate,
    PetProfileResponse,
    PetResponse,
)
from app.core.deps import get_db
from app.core.security import get_current_user, get_optional_user
from app.models.pet import PetSpecies
from app.models.user import User
from app.services import follow as follow_svc
from app.services import pet as pet_svc
from app.services.pagination import Page

router = APIRouter(prefix="/pets", tags=["pets"])


def _page_response(page: Page) -> PaginatedPetResponse:
    return PaginatedPetResponse(
        items=page.items,
        total=page.total,
        offset=page.offset,
        limit=page.limit,
        has_more=page.has_more,
    )


@router.post("", response_model=PetResponse, status_code=status.HTTP_201_CREATED)
async def create_pet(
    data: PetCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await pet_svc.create_pet(db, user, data)


@router.get("/me", response_model=PaginatedPetResponse)
async def list_my_pets(
    offset: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    page = await pet_svc.list_user_pets(db, user, offset=offset, limit=limit)
    return _page_response(page)


@router.get("/search", response_model=PaginatedPetResponse)
async def search_pets(
    query: str | None = Query(default=None, max_length=100),
    species: PetSpecies | None = Query(default=None),
    offset: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    page = await pet_svc.search_pets(
        db, query=query, species=species, offset=offset, limit=limit
    )
    return _page_response(page)


@router.get("/suggestions", response_model=list[PetResponse])
async def get_suggestions(
    limit: int | None = Query(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await pet_svc.get_suggestions(db, user, limit=limit)


@router.get("/{pet_id}", response_model=PetProfileResponse)
async def get_pet_profile(
    pet_id: int,
    as_pet: int | None = Query(default=None, description="Viewer pet for is_following"),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    viewer_pet_id = None
    if as_pet is not None and user is not None:
        viewer_pet_id = (await pet_svc.get_owned_pet(db, as_pet, user)).id
    pet, is_following = await pet_svc.get_pet_profile(db, pet_id, viewer_pet_id)
    return PetProfileResponse(
        **PetResponse.model_validate(pet).model_dump(), is_following=is_following
    )


@router.post("/{pet_id}/follow/{target_id}", status_code=status.HTTP_204_NO_CONTENT)
async def follow_pet(
    pet_id: int,
    target_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await follow_svc.follow_pet(db, user, pet_id, target_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{pet_id}/follow/{target_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unfollow_pet(
    pet_id: int,
    target_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await follow_svc.unfollow_pet(db, user, pet_id, target_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{pet_id}/followers", response_model=PaginatedPetResponse)
async def list_followers(
    pet_id: int,
    offset: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    page = await follow_svc.list_followers(db, pet_id, offset=offset, limit=limit)
    return _page_response(page)


@router.get("/{pet_id}/following", response_model=PaginatedPetResponse)
async def list_following(
    pet_id: int,
    offset: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    page = await follow_svc.list_following(db, pet_id, offset=offset, limit=limit)
    return _page_response(page)
