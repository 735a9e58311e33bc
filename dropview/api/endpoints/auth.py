"""
Authentication API endpoints.

This provides:
1. User registration and login
2. Profile access and partial updates
3. Engagement progress report
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from dropview.core.security import get_current_active_user
from dropview.dependencies import get_auth_service, get_user_service
from dropview.schemas.auth import (
    APIError,
    LoginResponse,
    ProgressResponse,
    RegistrationResponse,
    UserLoginRequest,
    UserProfileUpdateRequest,
    UserRegistrationRequest,
    UserResponse,
)
from dropview.services.auth_service import AuthService
from dropview.services.user_service import OPTIONAL_PROFILE_FIELDS, UserService

router = APIRouter(
    prefix="/auth/user",
    tags=["Authentication"],
    responses={
        400: {"model": APIError, "description": "Validation failed"},
    },
)


@router.post(
    "/signup",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    responses={
        201: {"description": "User registered successfully"},
        400: {"model": APIError, "description": "Duplicate email, invalid referral or missing fields"},
    },
)
async def signup(
    user_data: UserRegistrationRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    """
    Register a new user account.

    **Business Rules:**
    - Email (username) and phone must be unique
    - At least one product preference is required
    - A referral code, if given, must belong to an existing member
    - Returns a bearer token for immediate login
    """
    profile = user_data.model_dump(exclude={"password", "referral_code"})
    return await auth_service.register_user(
        profile=profile,
        password=user_data.password,
        referral_code=user_data.referral_code,
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Authenticate user",
    responses={
        400: {"model": APIError, "description": "Invalid email or password"},
    },
)
async def login(
    credentials: UserLoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    """
    Authenticate user and return a bearer token.

    Each login on a new calendar day extends or resets the login streak.
    """
    return await auth_service.authenticate_user(
        username=credentials.username, password=credentials.password
    )


@router.get(
    "",
    response_model=UserResponse,
    summary="Get current user profile",
    responses={401: {"model": APIError, "description": "Not authorized"}},
)
async def get_current_user_profile(
    current_user: Dict[str, Any] = Depends(get_current_active_user),
    user_service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    """Get the caller's full profile (without the password hash)."""
    return await user_service.get_profile(current_user["user_id"])


@router.put(
    "/profile",
    response_model=UserResponse,
    summary="Update current user profile",
    responses={401: {"model": APIError, "description": "Not authorized"}},
)
async def update_profile(
    update_data: UserProfileUpdateRequest,
    current_user: Dict[str, Any] = Depends(get_current_active_user),
    user_service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    """
    Partially update the caller's profile.

    Only the fields sent are changed; address components not sent keep
    their stored values. Optional fields sent as null are cleared.
    """
    fields = update_data.model_dump(exclude_unset=True, exclude_none=True)
    for field in OPTIONAL_PROFILE_FIELDS:
        if field in update_data.model_fields_set:
            fields[field] = getattr(update_data, field)
    return await user_service.update_profile(current_user["user_id"], fields)


@router.get(
    "/progress",
    response_model=ProgressResponse,
    summary="Get engagement progress",
    responses={401: {"model": APIError, "description": "Not authorized"}},
)
async def get_progress(
    current_user: Dict[str, Any] = Depends(get_current_active_user),
    user_service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    """
    Progress towards the member reward.

    Referrals, login streak and posts each count for a third of the score.
    """
    return await user_service.compute_progress(current_user["user_id"])
