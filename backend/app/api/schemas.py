from datetime import datetime

from pydantic import BaseModel, Field

from app.models.pet import PetSpecies
from app.models.post import PostVisibility
from app.models.post_media import MAX_MEDIA_PER_POST, MediaType
from app.services.feed_selector import FeedOrdering


# ---------------------------------------------------------------------------
# Pets
# ---------------------------------------------------------------------------


class PetCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    species: PetSpecies
    breed: str | None = Field(default=None, max_length=100)
    bio: str | None = Field(default=None, max_length=500)
    avatar_url: str | None = Field(default=None, max_length=500)


class PetSummary(BaseModel):
    id: int
    name: str
    species: str
    avatar_url: str | None = None

    model_config = {"from_attributes": True}


class PetResponse(PetSummary):
    owner_id: int
    breed: str | None
    bio: str | None
    followers_count: int
    following_count: int
    posts_count: int
    created_at: datetime


class PetProfileResponse(PetResponse):
    is_following: bool | None = None


class PaginatedPetResponse(BaseModel):
    items: list[PetResponse]
    total: int
    offset: int
    limit: int
    has_more: bool


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


class PostMediaCreate(BaseModel):
    media_type: MediaType
    url: str = Field(..., min_length=1, max_length=500)
    thumbnail_url: str | None = Field(default=None, max_length=500)
    width: int | None = Field(default=None, gt=0)
    height: int | None = Field(default=None, gt=0)
    duration_ms: int | None = Field(default=None, ge=0)
    mime_type: str | None = Field(default=None, max_length=100)


class PostMediaResponse(BaseModel):
    id: int | None = None
    media_type: str
    url: str
    thumbnail_url: str | None = None
    width: int | None = None
    height: int | None = None
    duration_ms: int | None = None
    mime_type: str | None = None
    position: int

    model_config = {"from_attributes": True}


class PostCreate(BaseModel):
    pet_id: int
    caption: str | None = Field(default=None, max_length=2200)
    visibility: PostVisibility = PostVisibility.PUBLIC
    media: list[PostMediaCreate] = Field(default_factory=list, max_length=MAX_MEDIA_PER_POST)


class PostResponse(BaseModel):
    id: int
    pet_id: int
    pet: PetSummary | None = None
    caption: str | None
    visibility: str
    likes_count: int
    comments_count: int
    shares_count: int
    media: list[PostMediaResponse] = []
    created_at: datetime

    model_config = {"from_attributes": True}


class ActingPetRequest(BaseModel):
    """Body for interactions performed as one of the caller's pets."""

    pet_id: int


class CommentCreate(BaseModel):
    pet_id: int
    content: str = Field(..., min_length=1, max_length=1000)
    parent_id: int | None = None


class CommentResponse(BaseModel):
    id: int
    post_id: int
    pet_id: int
    parent_id: int | None
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Feed
# ---------------------------------------------------------------------------


class FeedItem(PostResponse):
    engagement_score: float


class FeedResponse(BaseModel):
    ordering: FeedOrdering
    items: list[FeedItem]
    offset: int
    limit: int
    has_more: bool
    total: int | None = None
    next_cursor: str | None = None
