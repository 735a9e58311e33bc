"""
Referral Service - Referral codes, counters and leaderboard.

This provides:
1. Referral code generation (collision-checked)
2. Code validation for the signup flow
3. Atomic referral counting, tolerant of unknown codes
4. Cached leaderboard and the member's own referral info
"""

import secrets
import string
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from dropview.config import settings
from dropview.core.cache import CacheManager, cache_manager
from dropview.core.exceptions import NotFoundError
from dropview.repositories.user_repository import UserRepository
from dropview.services.base import BaseService

REFERRAL_CODE_ALPHABET = string.ascii_uppercase + string.digits
LEADERBOARD_NAMESPACE = "referral"


def generate_referral_code(length: Optional[int] = None) -> str:
    """Draw a random referral code of upper-case letters and digits."""
    length = length or settings.referral_code_length
    return "".join(secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(length))


def normalize_referral_code(referral_code: Optional[str]) -> str:
    return (referral_code or "").strip().upper()


class ReferralService(BaseService):
    """
    Referral ledger built on top of the user table.
    """

    def __init__(
        self,
        db: AsyncSession,
        user_repo: Optional[UserRepository] = None,
        cache: Optional[CacheManager] = None,
    ):
        super().__init__(db)
        self.user_repo = user_repo or UserRepository(db)
        self.cache = cache or cache_manager

    async def generate_unique_code(self) -> str:
        """
        Draw codes until one is not held by any user.

        Returns:
            An unused referral code
        """
        code = generate_referral_code()
        while await self.user_repo.referral_code_exists(code):
            self.logger.info("Referral code collision, drawing again")
            code = generate_referral_code()
        return code

    async def validate_code(self, referral_code: str) -> Dict[str, Any]:
        """
        Check a referral code before signup.

        Returns:
            {"valid": True, "referrer_name": ..., "referral_code": ...}

        Raises:
            NotFoundError: If no user holds the code
        """
        self._log_operation("validate_code", referral_code=referral_code)

        referrer = await self.user_repo.get_by_referral_code(
            normalize_referral_code(referral_code)
        )
        if not referrer:
            raise NotFoundError("Invalid referral code")

        return {
            "valid": True,
            "referrer_name": referrer.name,
            "referral_code": referrer.referral_code,
        }

    async def increment_referral_count(self, referral_code: str) -> bool:
        """
        Credit the owner of ``referral_code`` with one referral.

        Runs as a side effect of another user's registration, so it never
        raises: an unknown code or a database error is logged and ignored.

        Returns:
            True if a referrer was credited
        """
        self._log_operation("increment_referral_count", referral_code=referral_code)

        try:
            credited = await self.user_repo.increment_referrals_by_code(
                normalize_referral_code(referral_code)
            )
        except Exception as error:
            self.logger.error(f"Increment referral count error: {error}")
            await self.db.rollback()
            return False

        if not credited:
            self.logger.info(f"No referrer holds code {referral_code}, nothing to credit")
            return False

        await self.cache.delete_pattern("leaderboard:*", namespace=LEADERBOARD_NAMESPACE)
        return True

    async def get_leaderboard(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Top referrers by referral count (users with zero referrals excluded).

        Served from Redis when possible; a cache failure falls back to the
        database.
        """
        limit = limit or settings.leaderboard_size
        cache_key = f"leaderboard:{limit}"

        cached = await self.cache.get(cache_key, namespace=LEADERBOARD_NAMESPACE)
        if cached is not None:
            return cached

        try:
            users = await self.user_repo.get_referral_leaderboard(limit)
        except Exception as error:
            await self._handle_service_error(error, "get referral leaderboard")

        leaderboard = [
            {
                "name": user.name,
                "referrals_count": user.referrals_count,
                "referral_code": user.referral_code,
            }
            for user in users
        ]

        await self.cache.set(cache_key, leaderboard, namespace=LEADERBOARD_NAMESPACE)
        return leaderboard

    async def get_referral_info(self, user_id: int) -> Dict[str, Any]:
        """
        The member's own referral code, shareable link and count.

        Raises:
            NotFoundError: If the user no longer exists
        """
        user = await self.user_repo.get(user_id)
        if not user:
            raise NotFoundError("User not found")

        return {
            "referral_code": user.referral_code,
            "referral_link": self.build_referral_link(user.referral_code),
            "referrals_count": user.referrals_count,
            "user_name": user.name,
        }

    @staticmethod
    def build_referral_link(referral_code: Optional[str]) -> str:
        return f"{settings.frontend_url.rstrip('/')}/signup?ref={referral_code}"
