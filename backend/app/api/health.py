from fastapi import APIRouter

from app.core.config import settings
from app.services import scoring

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/config/public")
async def public_config() -> dict:
    """Public feed configuration (page sizes, ranking constants)."""
    return {
        "feed_default_page_size": settings.feed_default_page_size,
        "feed_max_page_size": settings.feed_max_page_size,
        "feed_max_offset": settings.feed_max_offset,
        "engagement_weights": {
            "like": scoring.LIKE_WEIGHT,
            "comment": scoring.COMMENT_WEIGHT,
            "share": scoring.SHARE_WEIGHT,
        },
        "decay_base": scoring.DECAY_BASE,
        "decay_period_hours": scoring.DECAY_PERIOD_HOURS,
    }
