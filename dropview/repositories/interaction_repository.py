"""
Interaction Repository - Like toggling for posts and comments.

Likes are rows guarded by a (user, target) unique constraint, so a toggle
is a delete-or-insert and never rewrites a shared array.
"""

from typing import Tuple, Type, Union

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dropview.models.interaction import CommentLike, PostLike
from dropview.repositories.base import BaseRepository

LikeModel = Union[PostLike, CommentLike]


class LikeRepository(BaseRepository[LikeModel]):
    """
    Like set of one kind of target (posts or comments).
    """

    def __init__(self, model: Type[LikeModel], target_field: str, db: AsyncSession):
        super().__init__(model, db)
        self.target_field = target_field
        self.target_column = getattr(model, target_field)

    async def toggle(self, target_id: int, user_id: int) -> Tuple[bool, int]:
        """
        Flip the user's membership in the target's like set.

        Args:
            target_id: Post or comment ID
            user_id: User toggling the like

        Returns:
            (liked, likes) - resulting membership and new cardinality
        """
        removed = await self.db.execute(
            delete(self.model).where(
                self.target_column == target_id, self.model.user_id == user_id
            )
        )

        if removed.rowcount > 0:
            liked = False
            await self.db.commit()
        else:
            liked = True
            try:
                await self.db.execute(
                    insert(self.model).values(
                        {self.target_field: target_id, "user_id": user_id}
                    )
                )
                await self.db.commit()
            except IntegrityError:
                # A concurrent toggle already inserted the same like
                await self.db.rollback()

        return liked, await self.count_for(target_id)

    async def count_for(self, target_id: int) -> int:
        result = await self.db.execute(
            select(func.count(self.model.id)).where(self.target_column == target_id)
        )
        return result.scalar() or 0


class PostLikeRepository(LikeRepository):
    def __init__(self, db: AsyncSession):
        super().__init__(PostLike, "post_id", db)


class CommentLikeRepository(LikeRepository):
    def __init__(self, db: AsyncSession):
        super().__init__(CommentLike, "comment_id", db)
