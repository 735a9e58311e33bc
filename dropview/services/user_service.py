"""
User Service - Business logic for member profiles.

This provides:
1. User creation (password hashing, referral code assignment)
2. Public projection of a user (never includes the password hash)
3. Partial profile updates over a whitelisted field set
4. Progress score computation with a sticky reward unlock
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from dropview.algorithms.engagement import calculate_progress
from dropview.core.exceptions import DuplicateIdentityError, NotFoundError, ValidationError
from dropview.core.security import security_manager
from dropview.models.user import User
from dropview.repositories.user_repository import UserRepository
from dropview.services.base import BaseService
from dropview.services.referral_service import ReferralService

# Profile strings that must be non-empty, at signup and after any update
REQUIRED_PROFILE_FIELDS = [
    "username",
    "name",
    "phone",
    "age_range",
    "marital_status",
    "style_preference",
    "gender_identity",
    "family_size",
    "try_frequency",
]
REQUIRED_ADDRESS_FIELDS = ["street", "city", "zip"]
OPTIONAL_PROFILE_FIELDS = ["occupation", "purchase_priorities"]

# Address keys as exposed to clients -> User columns
ADDRESS_COLUMNS = {"street": "street", "city": "city", "zip": "zip_code"}


def normalize_username(username: Optional[str]) -> str:
    return (username or "").strip().lower()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def clean_preferences(preferences: Optional[List[str]]) -> List[str]:
    return [p.strip() for p in (preferences or []) if isinstance(p, str) and p.strip()]


class UserService(BaseService):
    """
    User service handling profile-related business logic.
    """

    def __init__(
        self,
        db: AsyncSession,
        user_repo: Optional[UserRepository] = None,
        referral_service: Optional[ReferralService] = None,
    ):
        super().__init__(db)
        self.user_repo = user_repo or UserRepository(db)
        self.referral_service = referral_service or ReferralService(
            db, user_repo=self.user_repo
        )

    async def create_user(
        self,
        profile: Dict[str, Any],
        password: str,
        referrer: Optional[User] = None,
    ) -> User:
        """
        Persist a new user.

        The password is hashed and a fresh referral code assigned before
        the single INSERT. ``profile`` must already be validated.

        Args:
            profile: Validated signup fields (address flattened)
            password: Plain text password
            referrer: User whose referral code was used, if any

        Returns:
            Created user instance
        """
        self._log_operation("create_user", username=profile.get("username"))

        user_data = {
            "username": normalize_username(profile["username"]),
            "hashed_password": security_manager.create_password_hash(password),
            "name": profile["name"].strip(),
            "phone": profile["phone"].strip(),
            "street": profile["street"].strip(),
            "city": profile["city"].strip(),
            "zip_code": profile["zip"].strip(),
            "age_range": profile["age_range"],
            "marital_status": profile["marital_status"],
            "style_preference": profile["style_preference"],
            "gender_identity": profile["gender_identity"],
            "family_size": profile["family_size"],
            "occupation": profile.get("occupation"),
            "purchase_priorities": profile.get("purchase_priorities"),
            "product_preferences": clean_preferences(profile.get("product_preferences")),
            "try_frequency": profile["try_frequency"],
            "referral_code": await self.referral_service.generate_unique_code(),
            "referrals_count": 0,
            "referred_by_id": referrer.id if referrer else None,
            "login_streak": 0,
            "community_actions": 0,
            "reward_unlocked": False,
        }

        user = await self.user_repo.create(user_data)
        self.logger.info(f"User created successfully: {user.id}")
        return user

    async def get_profile(self, user_id: int) -> Dict[str, Any]:
        """
        Get the member's full profile.

        Raises:
            NotFoundError: If the user no longer exists
        """
        self._log_operation("get_profile", user_id=user_id)

        user = await self.user_repo.get(user_id)
        if not user:
            raise NotFoundError("User not found")
        return self.to_public(user)

    async def update_profile(self, user_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply a partial profile update.

        Only recognised fields that are present are applied. Address
        sub-fields that are omitted keep their stored values.

        Args:
            user_id: Member being updated
            fields: Present fields; ``address`` may be a partial dict

        Returns:
            Updated public projection

        Raises:
            NotFoundError: If the user no longer exists
            ValidationError: If a required field would become empty
            DuplicateIdentityError: If username/phone belongs to another user
        """
        self._log_operation("update_profile", user_id=user_id, fields=sorted(fields))

        try:
            user = await self.user_repo.get(user_id)
            if not user:
                raise NotFoundError("User not found")

            update_data = self._collect_profile_changes(fields)

            if "username" in update_data:
                other = await self.user_repo.get_by_username(update_data["username"])
                if other and other.id != user.id:
                    raise DuplicateIdentityError(
                        "Email already in use by another account."
                    )

            if "phone" in update_data:
                other = await self.user_repo.get_by_phone(update_data["phone"])
                if other and other.id != user.id:
                    raise DuplicateIdentityError(
                        "Phone number already in use by another account."
                    )

            if update_data:
                user = await self.user_repo.update(user.id, update_data)

            return self.to_public(user)

        except Exception as error:
            await self._handle_service_error(error, "update profile")

    async def compute_progress(self, user_id: int) -> Dict[str, Any]:
        """
        Score the member's engagement.

        The first time the score reaches 100% the unlock is persisted, so
        the reward stays unlocked even if a counter later drops.

        Raises:
            NotFoundError: If the user no longer exists
        """
        self._log_operation("compute_progress", user_id=user_id)

        user = await self.user_repo.get(user_id)
        if not user:
            raise NotFoundError("User not found")

        report = calculate_progress(
            referrals=user.referrals_count,
            login_streak=user.login_streak,
            community_actions=user.community_actions,
            reward_previously_unlocked=user.reward_unlocked,
        )

        if report.newly_unlocked:
            try:
                await self.user_repo.update(user.id, {"reward_unlocked": True})
            except Exception as error:
                await self._handle_service_error(error, "persist reward unlock")
            self.logger.info(f"Reward unlocked for user: {user.id}")

        return report.to_dict()

    def _collect_profile_changes(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Whitelist, normalise and validate the present update fields."""
        update_data: Dict[str, Any] = {}
        errors: List[str] = []

        for field in REQUIRED_PROFILE_FIELDS:
            if field not in fields:
                continue
            value = fields[field]
            if _is_blank(value):
                errors.append(f"{field} cannot be empty")
            else:
                update_data[field] = value.strip()

        for field in OPTIONAL_PROFILE_FIELDS:
            if field in fields:
                value = fields[field]
                update_data[field] = None if _is_blank(value) else value.strip()

        address = fields.get("address") or {}
        for key, column in ADDRESS_COLUMNS.items():
            if key not in address:
                continue
            if _is_blank(address[key]):
                errors.append(f"address.{key} cannot be empty")
            else:
                update_data[column] = address[key].strip()

        if "product_preferences" in fields:
            preferences = clean_preferences(fields["product_preferences"])
            if not preferences:
                errors.append("product_preferences must contain at least one item")
            else:
                update_data["product_preferences"] = preferences

        if errors:
            raise ValidationError("Validation failed", details=errors)

        if "username" in update_data:
            update_data["username"] = normalize_username(update_data["username"])

        return update_data

    @staticmethod
    def to_public(user: User) -> Dict[str, Any]:
        """Project a user onto the fields safe to return to clients."""
        return {
            "id": user.id,
            "username": user.username,
            "name": user.name,
            "phone": user.phone,
            "address": user.address,
            "age_range": user.age_range,
            "marital_status": user.marital_status,
            "style_preference": user.style_preference,
            "gender_identity": user.gender_identity,
            "family_size": user.family_size,
            "occupation": user.occupation,
            "purchase_priorities": user.purchase_priorities,
            "product_preferences": list(user.product_preferences or []),
            "try_frequency": user.try_frequency,
            "referral_code": user.referral_code,
            "referrals_count": user.referrals_count,
            "referred_by_id": user.referred_by_id,
            "login_streak": user.login_streak,
            "last_login": user.last_login,
            "community_actions": user.community_actions,
            "reward_unlocked": user.reward_unlocked,
            "created_at": user.created_at,
            "updated_at": user.updated_at,
        }
