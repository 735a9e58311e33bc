"""
Community models - Posts and comments of the community feed.
"""

from enum import Enum
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dropview.database import Base

if TYPE_CHECKING:
    from dropview.models.interaction import CommentLike, PostLike
    from dropview.models.user import User


class PostType(str, Enum):
    """Kinds of posts a member can publish"""

    QUESTION = "question"
    EXPERIENCE = "experience"


class Post(Base):
    """
    A question or experience shared on the community feed.

    Design decisions:
    - comments_count is a cached counter kept in step with the comments table
    - Image descriptor is flattened into three nullable columns
    - Author and likes load eagerly (selectin) so async code never lazy-loads
    """

    __tablename__ = "posts"

    author_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    type: Mapped[PostType] = mapped_column(
        SQLEnum(
            PostType,
            name="post_type",
            values_callable=lambda kinds: [kind.value for kind in kinds],
        ),
        index=True,
    )
    title: Mapped[Optional[str]] = mapped_column(String(300))
    content: Mapped[str] = mapped_column(Text)

    # Image stored in the asset store
    image_filename: Mapped[Optional[str]] = mapped_column(String(255))
    image_path: Mapped[Optional[str]] = mapped_column(String(1000))
    image_key: Mapped[Optional[str]] = mapped_column(String(500))

    comments_count: Mapped[int] = mapped_column(Integer, default=0)

    author: Mapped["User"] = relationship("User", lazy="selectin")
    likes: Mapped[List["PostLike"]] = relationship(
        "PostLike", lazy="selectin", viewonly=True
    )

    __table_args__ = (Index("idx_post_created", "created_at"),)

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, type='{self.type}')>"

    @property
    def has_image(self) -> bool:
        return bool(self.image_filename or self.image_key)

    @property
    def liker_ids(self) -> List[int]:
        return [like.user_id for like in self.likes]


class Comment(Base):
    """
    A comment on a post, optionally replying to another comment.
    """

    __tablename__ = "comments"

    post_id: Mapped[int] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"), index=True
    )
    author_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    content: Mapped[str] = mapped_column(Text)
    parent_comment_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("comments.id", ondelete="SET NULL"), index=True
    )

    author: Mapped["User"] = relationship("User", lazy="selectin")
    likes: Mapped[List["CommentLike"]] = relationship(
        "CommentLike", lazy="selectin", viewonly=True
    )

    __table_args__ = (Index("idx_comment_post_created", "post_id", "created_at"),)

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, post_id={self.post_id})>"

    @property
    def liker_ids(self) -> List[int]:
        return [like.user_id for like in self.likes]
