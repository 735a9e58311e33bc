"""
Community schemas for posts, comments and likes.

Posts are created and edited through multipart forms, so only the
comment endpoints take JSON request bodies.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CommentCreateRequest(BaseModel):
    """Schema for a new comment or reply."""

    content: str = Field(..., description="Comment text")
    parent_comment_id: Optional[int] = Field(
        None, description="Top-level comment this replies to"
    )

    model_config = ConfigDict(
        json_schema_extra={"example": {"content": "Loved it!", "parent_comment_id": None}}
    )


class CommentUpdateRequest(BaseModel):
    content: str = Field(..., description="New comment text")


class AuthorSummary(BaseModel):
    id: int
    username: str
    name: str


class PostImage(BaseModel):
    filename: Optional[str] = None
    path: Optional[str] = None
    key: Optional[str] = None


class PostResponse(BaseModel):
    """Schema for a post in the feed."""

    id: int
    author: Optional[AuthorSummary] = None
    type: str
    title: Optional[str] = None
    content: str
    image: Optional[PostImage] = None
    likes: List[int] = Field(default_factory=list, description="IDs of users who liked")
    likes_count: int = 0
    comments_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PostListResponse(BaseModel):
    items: List[PostResponse]
    total: int
    page: int
    limit: int


class CommentResponse(BaseModel):
    """Schema for a comment with its author."""

    id: int
    post_id: int
    author: Optional[AuthorSummary] = None
    content: str
    parent_comment_id: Optional[int] = None
    likes: List[int] = Field(default_factory=list)
    likes_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CommentListResponse(BaseModel):
    items: List[CommentResponse]
    total: int
    page: int
    limit: int


class LikeToggleResponse(BaseModel):
    likes: int
    liked: bool


class MessageResponse(BaseModel):
    message: str


class PostDeleteResponse(MessageResponse):
    deleted_comments: int
