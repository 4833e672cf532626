import logging

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import PetCreate
from app.core.config import settings
from app.models.follow import Follow
from app.models.pet import Pet, PetSpecies
from app.models.user import User
from app.services.pagination import Page, effective_page, paginate

logger = logging.getLogger(__name__)

SUGGESTIONS_DEFAULT_LIMIT = 10


async def create_pet(db: AsyncSession, owner: User, data: PetCreate) -> Pet:
    pet_count = (
        await db.execute(
            select(func.count(Pet.id)).where(
                Pet.owner_id == owner.id, Pet.deleted_at.is_(None)
            )
        )
    ).scalar() or 0
    if pet_count >= settings.max_pets_per_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Maximum {settings.max_pets_per_user} pets per user allowed",
        )

    pet = Pet(
        owner_id=owner.id,
        name=data.name,
        species=data.species.value,
        breed=data.breed,
        bio=data.bio,
        avatar_url=data.avatar_url,
        followers_count=0,
        following_count=0,
        posts_count=0,
    )
    db.add(pet)
    await db.commit()
    await db.refresh(pet)
    logger.info("Pet created: %s (%s) by user %s", pet.name, pet.id, owner.id)
    return pet


async def get_pet(db: AsyncSession, pet_id: int) -> Pet:
    result = await db.execute(
        select(Pet).where(Pet.id == pet_id, Pet.deleted_at.is_(None))
    )
    pet = result.scalar_one_or_none()
    if not pet:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Pet not found"
        )
    return pet


async def get_owned_pet(db: AsyncSession, pet_id: int, user: User) -> Pet:
    """Return the pet, raising 403 unless *user* owns it."""
    pet = await get_pet(db, pet_id)
    if pet.owner_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only act as your own pets",
        )
    return pet


async def get_owned_pet_ids(db: AsyncSession, user_id: int) -> set[int]:
    result = await db.execute(
        select(Pet.id).where(Pet.owner_id == user_id, Pet.deleted_at.is_(None))
    )
    return set(result.scalars().all())


async def get_pet_profile(
    db: AsyncSession, pet_id: int, viewer_pet_id: int | None = None
) -> tuple[Pet, bool | None]:
    """Return (pet, is_following); is_following is None without a viewer pet."""
    pet = await get_pet(db, pet_id)
    if viewer_pet_id is None:
        return pet, None

    result = await db.execute(
        select(Follow.id).where(
            Follow.follower_id == viewer_pet_id, Follow.following_id == pet_id
        )
    )
    return pet, result.scalar_one_or_none() is not None


# ---------------------------------------------------------------------------
# Listings and discovery
# ---------------------------------------------------------------------------


async def list_user_pets(
    db: AsyncSession, owner: User, offset: int | None = 0, limit: int | None = None
) -> Page:
    base = select(Pet).where(Pet.owner_id == owner.id, Pet.deleted_at.is_(None))
    return await paginate(db, base, (Pet.created_at.desc(), Pet.id.asc()), offset, limit)


async def search_pets(
    db: AsyncSession,
    query: str | None = None,
    species: PetSpecies | None = None,
    offset: int | None = 0,
    limit: int | None = None,
) -> Page:
    """Search pets by name or bio substring, most followed first."""
    base = select(Pet).where(Pet.deleted_at.is_(None))
    if query:
        base = base.where(
            or_(
                Pet.name.icontains(query, autoescape=True),
                Pet.bio.icontains(query, autoescape=True),
            )
        )
    if species is not None:
        base = base.where(Pet.species == species.value)
    return await paginate(
        db, base, (Pet.followers_count.desc(), Pet.id.asc()), offset, limit
    )


async def get_suggestions(
    db: AsyncSession, user: User, limit: int | None = None
) -> list[Pet]:
    """Popular pets the caller's pets don't follow yet (own pets excluded).

    A user without pets gets the most followed pets overall.
    """
    _, limit = effective_page(0, limit, default_limit=SUGGESTIONS_DEFAULT_LIMIT)
    own_ids = await get_owned_pet_ids(db, user.id)

    query = select(Pet).where(Pet.deleted_at.is_(None))
    if own_ids:
        followed = select(Follow.following_id).where(
            Follow.follower_id.in_(sorted(own_ids))
        )
        query = query.where(Pet.id.notin_(sorted(own_ids)), Pet.id.notin_(followed))

    query = query.order_by(Pet.followers_count.desc(), Pet.id.asc()).limit(limit)
    return list((await db.execute(query)).scalars().all())
