from enum import StrEnum

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, SoftDeleteMixin


class PostVisibility(StrEnum):
    PUBLIC = "public"
    FOLLOWERS = "followers"
    PRIVATE = "private"


class Post(SoftDeleteMixin, Base):
    __tablename__ = "posts"
    __table_args__ = (
        Index(
            "idx_posts_feed",
            "created_at",
            postgresql_where=text(
                "deleted_at IS NULL AND is_hidden = false AND visibility = 'public'"
            ),
        ),
    )

    pet_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("pets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    caption: Mapped[str | None] = mapped_column(String(2200), nullable=True)
    visibility: Mapped[str] = mapped_column(
        String(20), default=PostVisibility.PUBLIC.value, server_default="public"
    )

    # Denormalized interaction counters; the engagement score is derived from
    # these at read time and never stored.
    likes_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    comments_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    shares_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    # Moderation
    is_hidden: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )
    hidden_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Relationships
    pet = relationship("Pet", backref="posts", lazy="selectin")
    media = relationship(
        "PostMedia",
        backref="post",
        order_by="PostMedia.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
