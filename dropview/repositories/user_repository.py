"""
User Repository - Specialized data access for User model.

This provides:
1. Identity lookups (username, phone, referral code)
2. Referral counter updates and leaderboard queries
"""

from typing import List, Optional

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dropview.models.user import User
from dropview.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """
    User-specific repository extending BaseRepository.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_by_username(self, username: str) -> Optional[User]:
        """
        Get user by username (their email address).

        The username must already be normalised (lower-cased, trimmed).
        """
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_by_phone(self, phone: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.phone == phone))
        return result.scalar_one_or_none()

    async def get_by_referral_code(self, referral_code: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.referral_code == referral_code)
        )
        return result.scalar_one_or_none()

    async def referral_code_exists(self, referral_code: str) -> bool:
        result = await self.db.execute(
            select(User.id).where(User.referral_code == referral_code)
        )
        return result.first() is not None

    async def increment_referrals_by_code(self, referral_code: str) -> bool:
        """
        Atomically increment the referral counter of the code's owner.

        Args:
            referral_code: Code used by the newly registered user

        Returns:
            True if a user held the code, False otherwise
        """
        result = await self.db.execute(
            update(User)
            .where(User.referral_code == referral_code)
            .values(referrals_count=User.referrals_count + 1)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount > 0

    async def get_referral_leaderboard(self, limit: int = 10) -> List[User]:
        """
        Get the users with the most successful referrals.

        Users without any referral are left out.
        """
        result = await self.db.execute(
            select(User)
            .where(User.referrals_count > 0)
            .order_by(desc(User.referrals_count), User.id)
            .limit(limit)
        )
        return list(result.scalars().all())
