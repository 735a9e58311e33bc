"""
FastAPI dependencies for dependency injection.

This provides:
1. Service layer dependency injection
2. Repository and external store injection (overridable in tests)
3. Lenient pagination parsing
"""

from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dropview.config import settings
from dropview.core.cache import CacheManager, cache_manager
from dropview.core.storage import S3StorageService, storage_service
from dropview.database import get_db
from dropview.repositories.user_repository import UserRepository
from dropview.services.auth_service import AuthService
from dropview.services.community_service import CommunityService, clamp_paging
from dropview.services.referral_service import ReferralService
from dropview.services.user_service import UserService


# External stores
def get_asset_store() -> S3StorageService:
    """Get the asset store used for post images."""
    return storage_service


def get_cache() -> CacheManager:
    """Get the Redis cache manager."""
    return cache_manager


# Repository Dependencies
def get_user_repository(db: AsyncSession = Depends(get_db)) -> UserRepository:
    """Get UserRepository instance with database session."""
    return UserRepository(db)


# Service Dependencies
def get_referral_service(
    db: AsyncSession = Depends(get_db),
    user_repo: UserRepository = Depends(get_user_repository),
    cache: CacheManager = Depends(get_cache),
) -> ReferralService:
    """Get ReferralService instance with database session."""
    return ReferralService(db, user_repo=user_repo, cache=cache)


def get_user_service(
    db: AsyncSession = Depends(get_db),
    user_repo: UserRepository = Depends(get_user_repository),
    referral_service: ReferralService = Depends(get_referral_service),
) -> UserService:
    """Get UserService instance with database session."""
    return UserService(db, user_repo=user_repo, referral_service=referral_service)


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    user_repo: UserRepository = Depends(get_user_repository),
    referral_service: ReferralService = Depends(get_referral_service),
    user_service: UserService = Depends(get_user_service),
) -> AuthService:
    """Get AuthService instance with database session."""
    return AuthService(
        db,
        user_repo=user_repo,
        referral_service=referral_service,
        user_service=user_service,
    )


def get_community_service(
    db: AsyncSession = Depends(get_db),
    user_repo: UserRepository = Depends(get_user_repository),
    storage: S3StorageService = Depends(get_asset_store),
) -> CommunityService:
    """Get CommunityService instance with database session."""
    return CommunityService(db, user_repo=user_repo, storage=storage)


# Common pagination dependency
def _parse_int(raw: Optional[str]) -> Optional[int]:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


class PaginationParams:
    """
    Pagination parameters for list endpoints.

    Missing or non-numeric values fall back to the defaults, then both are
    normalized by ``clamp_paging``.
    """

    def __init__(
        self,
        page: Optional[str] = None,
        limit: Optional[str] = None,
        default_limit: int = 10,
        max_limit: int = 50,
    ):
        self.page, self.limit = clamp_paging(
            _parse_int(page), _parse_int(limit), default_limit, max_limit
        )

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def get_post_pagination(
    page: Optional[str] = None, limit: Optional[str] = None
) -> PaginationParams:
    """Pagination for the post feed."""
    return PaginationParams(
        page, limit, settings.posts_default_page_size, settings.posts_max_page_size
    )


def get_comment_pagination(
    page: Optional[str] = None, limit: Optional[str] = None
) -> PaginationParams:
    """Pagination for comment threads."""
    return PaginationParams(
        page, limit, settings.comments_default_page_size, settings.comments_max_page_size
    )
