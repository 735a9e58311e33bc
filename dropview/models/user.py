"""
User model - Registered members of the community.

This model holds:
1. Login identity (email-form username, phone) and the password hash
2. Postal address and demographic profile collected at signup
3. Referral bookkeeping (own code, count, who referred this user)
4. Engagement counters feeding the progress score
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from dropview.database import Base


class User(Base):
    """
    User model.

    Design decisions:
    - Username is the user's email, stored lower-cased and trimmed
    - Address is flattened into columns and exposed as a nested object
    - Counters are plain integers updated with atomic UPDATE statements
    """

    __tablename__ = "users"

    # Authentication
    username: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))
    phone: Mapped[str] = mapped_column(String(32), unique=True, index=True)

    # Profile
    name: Mapped[str] = mapped_column(String(255))
    street: Mapped[str] = mapped_column(String(255))
    city: Mapped[str] = mapped_column(String(120))
    zip_code: Mapped[str] = mapped_column(String(20))

    # Demographics
    age_range: Mapped[str] = mapped_column(String(50))
    marital_status: Mapped[str] = mapped_column(String(50))
    style_preference: Mapped[str] = mapped_column(String(100))
    gender_identity: Mapped[str] = mapped_column(String(50))
    family_size: Mapped[str] = mapped_column(String(50))
    occupation: Mapped[Optional[str]] = mapped_column(String(120))
    purchase_priorities: Mapped[Optional[str]] = mapped_column(String(255))

    # Product preferences
    product_preferences: Mapped[List[str]] = mapped_column(JSON, default=list)
    try_frequency: Mapped[str] = mapped_column(String(50))

    # Referrals
    referral_code: Mapped[Optional[str]] = mapped_column(
        String(16), unique=True, index=True
    )
    referrals_count: Mapped[int] = mapped_column(Integer, default=0, index=True)
    referred_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )

    # Engagement
    login_streak: Mapped[int] = mapped_column(Integer, default=0)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    community_actions: Mapped[int] = mapped_column(Integer, default=0)
    reward_unlocked: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"

    @property
    def address(self) -> Dict[str, Any]:
        return {"street": self.street, "city": self.city, "zip": self.zip_code}
