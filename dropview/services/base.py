"""
Base Service - Common service functionality and patterns.

This provides:
1. Common service initialization
2. Error translation (business errors pass through, unique-constraint
   violations become duplicate-identity errors, the rest become a
   generic service error)
3. Operation logging
4. Best-effort execution of secondary work
"""

import logging
from typing import Any, Awaitable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dropview.core.exceptions import AppException, DuplicateIdentityError, ServiceError

logger = logging.getLogger(__name__)

# Unique columns and the message reported when one of them collides
UNIQUE_FIELD_MESSAGES = {
    "username": "Email already in use. Try a different one.",
    "phone": "Phone number already in use. Try a different one.",
    "referral_code": "Referral code collision, please retry.",
}


class BaseService:
    """
    Base service class providing common functionality.

    This establishes patterns for:
    - Database session management
    - Error handling
    - Logging
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize service with database session.

        Args:
            db: Async database session
        """
        self.db = db
        self.logger = logger

    async def _handle_service_error(self, error: Exception, operation: str) -> None:
        """
        Centralized error handling for services.

        Always raises.

        Args:
            error: The exception that occurred
            operation: Description of the operation that failed
        """
        if isinstance(error, AppException):
            raise error

        self.logger.error(f"Service error in {operation}: {str(error)}")

        try:
            await self.db.rollback()
        except Exception as rollback_error:
            self.logger.error(f"Failed to rollback transaction: {rollback_error}")

        if isinstance(error, IntegrityError):
            raise self._translate_integrity_error(error) from error

        raise ServiceError() from error

    def _translate_integrity_error(self, error: IntegrityError) -> AppException:
        """Map a unique-constraint violation to the field that collided."""
        message = str(error.orig) if error.orig is not None else str(error)
        for field, user_message in UNIQUE_FIELD_MESSAGES.items():
            if field in message:
                return DuplicateIdentityError(user_message)
        return ServiceError()

    def _log_operation(self, operation: str, **kwargs) -> None:
        """
        Log service operations for debugging and monitoring.

        Args:
            operation: Description of the operation
            **kwargs: Additional context to log
        """
        context = " ".join([f"{k}={v}" for k, v in kwargs.items()])
        self.logger.info(f"Service operation: {operation} {context}")

    async def _best_effort(self, awaitable: Awaitable[Any], operation: str) -> Optional[Any]:
        """
        Await secondary work whose failure must not fail the caller.

        Returns:
            The awaitable's result, or None if it raised
        """
        try:
            return await awaitable
        except Exception as error:
            self.logger.warning(f"Best-effort {operation} failed: {error}")
            return None
