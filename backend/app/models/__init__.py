from app.models.user import User
from app.models.pet import Pet
from app.models.follow import Follow
from app.models.post import Post
from app.models.like import Like
from app.models.comment import Comment
from app.models.post_media import PostMedia

__all__ = [
    "User",
    "Pet",
    "Follow",
    "Post",
    "Like",
    "Comment",
    "PostMedia",
]
