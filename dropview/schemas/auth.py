"""
Authentication schemas for request/response validation.

This provides:
1. Signup, login and profile update request schemas
2. Public user projection and token responses
3. Progress report response
4. The shared error body
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserRegistrationRequest(BaseModel):
    """Schema for user registration requests."""

    username: EmailStr = Field(..., description="User's email address, used to log in")
    password: str = Field(..., min_length=1, max_length=100, description="User's password")
    name: str = Field(..., max_length=255)
    phone: str = Field(..., max_length=50)
    street: str = Field(..., max_length=255)
    city: str = Field(..., max_length=100)
    zip: str = Field(..., max_length=20)
    age_range: str
    marital_status: str
    style_preference: str
    gender_identity: str
    family_size: str
    occupation: Optional[str] = None
    purchase_priorities: Optional[str] = None
    product_preferences: List[str] = Field(..., description="At least one product category")
    try_frequency: str
    referral_code: Optional[str] = Field(None, description="Code of the referring member")

    @field_validator("product_preferences")
    @classmethod
    def validate_product_preferences(cls, v):
        """At least one non-empty preference is required"""
        if not any(p.strip() for p in v):
            raise ValueError("product_preferences must contain at least one item")
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "username": "jane@example.com",
                "password": "s3cret-pass",
                "name": "Jane Doe",
                "phone": "555-0100",
                "street": "1 Main St",
                "city": "Springfield",
                "zip": "12345",
                "age_range": "25-34",
                "marital_status": "single",
                "style_preference": "casual",
                "gender_identity": "female",
                "family_size": "2",
                "product_preferences": ["skincare", "snacks"],
                "try_frequency": "weekly",
                "referral_code": "AB12CD34",
            }
        }
    )


class UserLoginRequest(BaseModel):
    """Schema for user login requests."""

    username: str = Field(..., description="User's email address")
    password: str = Field(..., description="User's password")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"username": "jane@example.com", "password": "s3cret-pass"}
        }
    )


class AddressUpdate(BaseModel):
    """Address components; omitted components keep their stored value."""

    street: Optional[str] = None
    city: Optional[str] = None
    zip: Optional[str] = None


class UserProfileUpdateRequest(BaseModel):
    """Schema for partial profile updates. Unknown fields are ignored."""

    name: Optional[str] = None
    username: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[AddressUpdate] = None
    age_range: Optional[str] = None
    marital_status: Optional[str] = None
    style_preference: Optional[str] = None
    gender_identity: Optional[str] = None
    family_size: Optional[str] = None
    occupation: Optional[str] = None
    purchase_priorities: Optional[str] = None
    product_preferences: Optional[List[str]] = None
    try_frequency: Optional[str] = None


class UserAddress(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    zip: Optional[str] = None


class UserResponse(BaseModel):
    """Public projection of a user. Never includes the password hash."""

    id: int
    username: str
    name: str
    phone: str
    address: UserAddress
    age_range: str
    marital_status: str
    style_preference: str
    gender_identity: str
    family_size: str
    occupation: Optional[str] = None
    purchase_priorities: Optional[str] = None
    product_preferences: List[str]
    try_frequency: str
    referral_code: Optional[str] = None
    referrals_count: int
    referred_by_id: Optional[int] = None
    login_streak: int
    last_login: Optional[datetime] = None
    community_actions: int
    reward_unlocked: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RegistrationResponse(BaseModel):
    """Schema for successful signup."""

    token: str
    user: UserResponse
    message: str


class LoginResponse(BaseModel):
    """Schema for successful login."""

    token: str
    token_type: str = "bearer"
    message: str


class MetricProgressResponse(BaseModel):
    current: int
    target: int
    completed: bool
    remaining: int


class ProgressResponse(BaseModel):
    """Engagement score and its per-metric breakdown."""

    progress: int = Field(..., ge=0, le=100)
    reward_unlocked: bool
    metrics: Dict[str, MetricProgressResponse]


class APIError(BaseModel):
    """Shared error body."""

    error: str
    details: Optional[List[str]] = None
