from enum import StrEnum

from sqlalchemy import CheckConstraint, ForeignKey, Integer, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base

MAX_MEDIA_PER_POST = 10


class MediaType(StrEnum):
    IMAGE = "image"
    VIDEO = "video"


class PostMedia(Base):
    """Media attached to a post. Files live in external storage; only URLs are kept."""

    __tablename__ = "post_media"
    __table_args__ = (
        CheckConstraint(f"position < {MAX_MEDIA_PER_POST}", name="ck_post_media_position"),
    )

    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    media_type: Mapped[str] = mapped_column(String(10), nullable=False)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    thumbnail_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    width: Mapped[int | None] = mapped_column(Integer, nullable=True)
    height: Mapped[int | None] = mapped_column(Integer, nullable=True)
    duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)  # videos only
    mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    position: Mapped[int] = mapped_column(SmallInteger, default=0, server_default="0")
