"""
Authentication Service - Business logic for user authentication.

This provides:
1. User registration workflow (with referral attribution)
2. Login with login-streak bookkeeping
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from dropview.algorithms.engagement import next_login_streak
from dropview.core.exceptions import (
    DuplicateIdentityError,
    InvalidCredentialsError,
    InvalidReferralError,
    ValidationError,
)
from dropview.core.security import security_manager
from dropview.repositories.user_repository import UserRepository
from dropview.services.base import BaseService
from dropview.services.referral_service import ReferralService, normalize_referral_code
from dropview.services.user_service import (
    REQUIRED_ADDRESS_FIELDS,
    REQUIRED_PROFILE_FIELDS,
    UserService,
    clean_preferences,
    normalize_username,
)


class AuthService(BaseService):
    """
    Authentication service handling all auth-related business logic.
    """

    def __init__(
        self,
        db: AsyncSession,
        user_repo: Optional[UserRepository] = None,
        referral_service: Optional[ReferralService] = None,
        user_service: Optional[UserService] = None,
    ):
        super().__init__(db)
        self.user_repo = user_repo or UserRepository(db)
        self.referral_service = referral_service or ReferralService(
            db, user_repo=self.user_repo
        )
        self.user_service = user_service or UserService(
            db, user_repo=self.user_repo, referral_service=self.referral_service
        )

    async def register_user(
        self,
        profile: Dict[str, Any],
        password: str,
        referral_code: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Register a new user.

        Business rules:
        1. Required profile fields are non-empty, preferences non-empty
        2. Username and phone are unique
        3. A supplied referral code must belong to an existing user
        4. The referrer is credited after the user is persisted; a failure
           there never fails the registration
        5. A bearer token is returned for immediate login

        Args:
            profile: Signup fields with a flat address (street, city, zip)
            password: Plain text password
            referral_code: Optional code of the referring user

        Returns:
            {"token": ..., "user": public projection, "message": ...}

        Raises:
            ValidationError: If required fields are missing
            DuplicateIdentityError: If the username or phone is taken
            InvalidReferralError: If the referral code matches no user
        """
        self._log_operation("register_user", username=profile.get("username"))

        try:
            self._validate_registration_data(profile, password)

            username = normalize_username(profile["username"])
            if await self.user_repo.get_by_username(username):
                raise DuplicateIdentityError()

            if await self.user_repo.get_by_phone(profile["phone"].strip()):
                raise DuplicateIdentityError(
                    "Phone number already in use. Try a different one."
                )

            referrer = None
            code = normalize_referral_code(referral_code)
            if code:
                referrer = await self.user_repo.get_by_referral_code(code)
                if not referrer:
                    raise InvalidReferralError()

            user = await self.user_service.create_user(
                profile, password, referrer=referrer
            )

        except Exception as error:
            await self._handle_service_error(error, "register user")

        if referrer:
            await self._best_effort(
                self.referral_service.increment_referral_count(referrer.referral_code),
                "referral increment",
            )

        self.logger.info(f"User registered successfully: {user.id}")

        return {
            "token": security_manager.issue_user_token(user.id),
            "user": UserService.to_public(user),
            "message": "Email has been registered",
        }

    async def authenticate_user(
        self,
        username: str,
        password: str,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Authenticate user credentials and advance the login streak.

        Unknown usernames and wrong passwords fail identically.

        Args:
            username: Email-form username
            password: Plain text password
            now: Login instant, defaults to the current UTC time

        Returns:
            {"token": ..., "token_type": "bearer", "message": ...}

        Raises:
            InvalidCredentialsError: If the credentials do not match
        """
        self._log_operation("authenticate_user", username=username)

        try:
            user = await self.user_repo.get_by_username(normalize_username(username))
        except Exception as error:
            await self._handle_service_error(error, "authenticate user")

        if not user or not security_manager.verify_password(password, user.hashed_password):
            self.logger.warning(f"Failed login attempt for: {username}")
            raise InvalidCredentialsError()

        now = now or datetime.now(timezone.utc)
        streak = next_login_streak(user.last_login, user.login_streak, now)

        try:
            await self.user_repo.update(
                user.id, {"login_streak": streak, "last_login": now}
            )
        except Exception as error:
            await self._handle_service_error(error, "record login")

        self.logger.info(f"User authenticated successfully: {user.id} (streak {streak})")

        return {
            "token": security_manager.issue_user_token(user.id),
            "token_type": "bearer",
            "message": "Login successful",
        }

    def _validate_registration_data(self, profile: Dict[str, Any], password: str) -> None:
        """Collect one message per missing or empty field."""
        errors: List[str] = []

        for field in REQUIRED_PROFILE_FIELDS + REQUIRED_ADDRESS_FIELDS:
            value = profile.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                errors.append(f"{field} is required")

        if not password:
            errors.append("password is required")

        if not clean_preferences(profile.get("product_preferences")):
            errors.append("product_preferences must contain at least one item")

        if errors:
            raise ValidationError("Validation failed", details=errors)
