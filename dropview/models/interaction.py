"""
Interaction models - Likes on posts and comments.

A like is a row keyed by (user, target). The unique constraint makes the
like set a real set: toggling deletes the caller's row or inserts it, and a
concurrent duplicate insert fails instead of double-counting.
"""

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from dropview.database import Base


class PostLike(Base):
    __tablename__ = "post_likes"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    post_id: Mapped[int] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"), index=True
    )

    __table_args__ = (
        UniqueConstraint("user_id", "post_id", name="unique_user_post_like"),
    )

    def __repr__(self) -> str:
        return f"<PostLike(user_id={self.user_id}, post_id={self.post_id})>"


class CommentLike(Base):
    __tablename__ = "comment_likes"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    comment_id: Mapped[int] = mapped_column(
        ForeignKey("comments.id", ondelete="CASCADE"), index=True
    )

    __table_args__ = (
        UniqueConstraint("user_id", "comment_id", name="unique_user_comment_like"),
    )

    def __repr__(self) -> str:
        return f"<CommentLike(user_id={self.user_id}, comment_id={self.comment_id})>"
