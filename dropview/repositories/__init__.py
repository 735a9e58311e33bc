"""
Repository layer - Data access patterns for the application.

This module exports all repositories for easy importing:
- BaseRepository: Generic CRUD operations
- UserRepository: Identity and referral queries
- PostRepository / CommentRepository: Community feed data access
- PostLikeRepository / CommentLikeRepository: Like toggling
"""

from .base import BaseRepository
from .content_repository import CommentRepository, PostRepository
from .interaction_repository import (
    CommentLikeRepository,
    LikeRepository,
    PostLikeRepository,
)
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "PostRepository",
    "CommentRepository",
    "LikeRepository",
    "PostLikeRepository",
    "CommentLikeRepository",
]
