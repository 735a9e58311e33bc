"""
Referral API endpoints.

This provides:
1. The caller's referral code and shareable link
2. Pre-signup referral code validation (no token required)
3. Top referrers leaderboard
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from dropview.core.security import get_current_active_user
from dropview.dependencies import get_referral_service
from dropview.schemas.auth import APIError
from dropview.schemas.referral import (
    LeaderboardResponse,
    ReferralInfoResponse,
    ReferralValidationResponse,
)
from dropview.services.referral_service import ReferralService

router = APIRouter(prefix="/referral", tags=["Referrals"])


@router.get(
    "/info",
    response_model=ReferralInfoResponse,
    summary="Get own referral info",
    responses={401: {"model": APIError, "description": "Not authorized"}},
)
async def get_referral_info(
    current_user: Dict[str, Any] = Depends(get_current_active_user),
    referral_service: ReferralService = Depends(get_referral_service),
) -> Dict[str, Any]:
    return await referral_service.get_referral_info(current_user["user_id"])


@router.get(
    "/validate/{referral_code}",
    response_model=ReferralValidationResponse,
    summary="Validate a referral code",
    responses={404: {"model": APIError, "description": "Invalid referral code"}},
)
async def validate_referral_code(
    referral_code: str,
    referral_service: ReferralService = Depends(get_referral_service),
) -> Dict[str, Any]:
    """Check a code before signup and show who it belongs to."""
    return await referral_service.validate_code(referral_code)


@router.get(
    "/leaderboard",
    response_model=LeaderboardResponse,
    summary="Top referrers",
    responses={401: {"model": APIError, "description": "Not authorized"}},
)
async def get_leaderboard(
    current_user: Dict[str, Any] = Depends(get_current_active_user),
    referral_service: ReferralService = Depends(get_referral_service),
) -> Dict[str, Any]:
    """Members with at least one referral, most referrals first."""
    return {"leaderboard": await referral_service.get_leaderboard()}
