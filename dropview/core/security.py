"""
Security utilities for authentication.

This provides:
1. JWT bearer token creation and validation
2. Password hashing and verification
3. The FastAPI dependency that resolves the caller's identity
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from dropview.config import settings
from dropview.core.exceptions import AuthenticationError

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.password_hash_rounds,
)

# JWT token scheme; missing headers are reported by get_current_user_token
security = HTTPBearer(auto_error=False)


class SecurityManager:
    """
    Centralized security management for the application.

    Issues and verifies the bearer tokens that carry a user's identity,
    and hashes passwords with a salted one-way function.
    """

    def __init__(self):
        self.secret_key = settings.secret_key
        self.algorithm = settings.algorithm
        self.access_token_expire_days = settings.access_token_expire_days

    def create_password_hash(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password string
        """
        return pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Args:
            plain_password: Plain text password
            hashed_password: Previously hashed password

        Returns:
            True if password matches, False otherwise
        """
        if not plain_password or not hashed_password:
            return False
        return pwd_context.verify(plain_password, hashed_password)

    def create_access_token(
        self, data: Dict[str, Any], expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create a JWT access token.

        Args:
            data: Data to encode in the token (user_id)
            expires_delta: Optional custom expiration time

        Returns:
            Encoded JWT token string
        """
        to_encode = data.copy()

        if expires_delta:
            expire = datetime.utcnow() + expires_delta
        else:
            expire = datetime.utcnow() + timedelta(days=self.access_token_expire_days)

        to_encode.update(
            {
                "exp": expire,
                "iat": datetime.utcnow(),
                "type": "access_token",
            }
        )

        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Decode and validate a JWT token.

        Raises:
            AuthenticationError: If token is invalid or expired
        """
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            raise AuthenticationError("Not authorized, token failed")

    def extract_user_from_token(self, token: str) -> Dict[str, Any]:
        """
        Extract the caller's identity from a JWT token.

        Args:
            token: JWT token string

        Returns:
            {"user_id": int}

        Raises:
            AuthenticationError: If token is invalid or doesn't carry a user
        """
        payload = self.decode_token(token)

        if payload.get("type") != "access_token":
            raise AuthenticationError("Not authorized, token failed")

        user_id = payload.get("user_id")
        if not isinstance(user_id, int):
            raise AuthenticationError("Not authorized, token failed")

        return {"user_id": user_id}

    def issue_user_token(self, user_id: int) -> str:
        """Create the bearer token handed to a user after signup or login."""
        return self.create_access_token({"user_id": user_id})


# Global security manager instance
security_manager = SecurityManager()


async def get_current_user_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Dict[str, Any]:
    """
    FastAPI dependency resolving the caller from the bearer token.

    @router.get("/protected")
    async def protected_route(current_user: dict = Depends(get_current_user_token)):
        return {"user_id": current_user["user_id"]}

    Raises:
        AuthenticationError: If the header is missing or the token is invalid
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authorized, no token")

    return security_manager.extract_user_from_token(credentials.credentials)


async def get_current_active_user(
    current_user: Dict[str, Any] = Depends(get_current_user_token),
) -> Dict[str, Any]:
    """
    FastAPI dependency to get the authenticated user (alias for readability).
    """
    return current_user
