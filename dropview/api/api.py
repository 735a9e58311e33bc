"""
API router - Combines all API endpoints.
"""

from fastapi import APIRouter

from dropview.api.endpoints import auth, community, referral

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(community.router)
api_router.include_router(referral.router)

# API metadata for documentation
tags_metadata = [
    {
        "name": "Authentication",
        "description": "Signup, login, profile and progress",
    },
    {
        "name": "Community",
        "description": "Posts, comments and likes",
    },
    {
        "name": "Referrals",
        "description": "Referral codes and leaderboard",
    },
]
