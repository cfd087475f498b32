# Importing every model registers it on Base.metadata and lets string-based
# relationship targets ("Post", "Comment.id") resolve.
from app.models.access_token import PersonalAccessToken
from app.models.category import Category
from app.models.comment import Comment
from app.models.post import Post
from app.models.user import User

__all__ = [
    "Category",
    "Comment",
    "PersonalAccessToken",
    "Post",
    "User",
]
