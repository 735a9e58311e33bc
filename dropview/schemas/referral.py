"""
Referral schemas.
"""

from typing import List, Optional

from pydantic import BaseModel


class ReferralValidationResponse(BaseModel):
    valid: bool
    referrer_name: str
    referral_code: str


class LeaderboardEntry(BaseModel):
    name: str
    referrals_count: int
    referral_code: Optional[str] = None


class LeaderboardResponse(BaseModel):
    leaderboard: List[LeaderboardEntry]


class ReferralInfoResponse(BaseModel):
    """The member's own referral code and shareable signup link."""

    referral_code: Optional[str] = None
    referral_link: str
    referrals_count: int
    user_name: str
