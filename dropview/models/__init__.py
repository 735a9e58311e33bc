# Import all models to make them available
from .community import Comment, Post, PostType
from .interaction import CommentLike, PostLike
from .user import User

__all__ = [
    "User",
    "Post",
    "PostType",
    "Comment",
    "PostLike",
    "CommentLike",
]
