"""
Community Repositories - Data access for posts and comments.

This provides:
1. Feed and thread pagination queries
2. Cascading deletes (post -> comments -> likes) in one transaction
3. Comment counting for cached-counter reconciliation
"""

from typing import List

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dropview.models.community import Comment, Post
from dropview.models.interaction import CommentLike, PostLike
from dropview.repositories.base import BaseRepository


class PostRepository(BaseRepository[Post]):
    """
    Post-specific repository.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Post, db)

    async def get_feed(self, skip: int = 0, limit: int = 10) -> List[Post]:
        """
        Get posts newest first.

        Args:
            skip: Pagination offset
            limit: Maximum results

        Returns:
            List of posts with authors and likes loaded
        """
        result = await self.db.execute(
            select(Post)
            .order_by(desc(Post.created_at), desc(Post.id))
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def delete_with_comments(self, post_id: int) -> int:
        """
        Delete a post together with every comment on it.

        Replies, comment likes and post likes go too. Everything runs in a
        single transaction.

        Returns:
            Number of comments removed
        """
        comment_ids = select(Comment.id).where(Comment.post_id == post_id)

        await self.db.execute(
            delete(CommentLike)
            .where(CommentLike.comment_id.in_(comment_ids))
            .execution_options(synchronize_session=False)
        )
        removed = await self.db.execute(
            delete(Comment)
            .where(Comment.post_id == post_id)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(
            delete(PostLike)
            .where(PostLike.post_id == post_id)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(
            delete(Post)
            .where(Post.id == post_id)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return removed.rowcount


class CommentRepository(BaseRepository[Comment]):
    """
    Comment-specific repository.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Comment, db)

    async def get_thread(
        self, post_id: int, skip: int = 0, limit: int = 20
    ) -> List[Comment]:
        """
        Get a post's comments in chronological order (oldest first).
        """
        result = await self.db.execute(
            select(Comment)
            .where(Comment.post_id == post_id)
            .order_by(Comment.created_at, Comment.id)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_for_post(self, post_id: int) -> int:
        result = await self.db.execute(
            select(func.count(Comment.id)).where(Comment.post_id == post_id)
        )
        return result.scalar() or 0

    async def delete_comment(self, comment_id: int) -> bool:
        """
        Delete a comment and its likes.

        Replies to the comment are kept and detached from it.

        Returns:
            True if the comment existed
        """
        await self.db.execute(
            update(Comment)
            .where(Comment.parent_comment_id == comment_id)
            .values(parent_comment_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(
            delete(CommentLike)
            .where(CommentLike.comment_id == comment_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(
            delete(Comment)
            .where(Comment.id == comment_id)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount > 0
