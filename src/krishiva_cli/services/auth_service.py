"""Service for handling authentication-related operations."""

from __future__ import annotations

import logging
import re

from pydantic import ValidationError as PydanticValidationError

from krishiva_cli.models import (
    AuthenticationError,
    CreateUserResult,
    SessionSnapshot,
    UserCreate,
    ValidationError,
)
from krishiva_cli.repositories import UserRepository
from krishiva_cli.services.session_service import SessionManager

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6


def validate_signup(name: str, email: str, password: str, confirm_password: str) -> None:
    """Check signup form input.

    Raises:
        ValidationError: With the message shown to the user
    """
    if not all(v and v.strip() for v in (name, email, password, confirm_password)):
        raise ValidationError("Please fill in all fields")
    if not EMAIL_PATTERN.match(email.strip()):
        raise ValidationError("Please enter a valid email address")
    if password != confirm_password:
        raise ValidationError("Passwords do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


class AuthService:
    """Signup, login and logout against the local vault."""

    def __init__(self, user_repo: UserRepository, session_manager: SessionManager):
        self.user_repo = user_repo
        self.session_manager = session_manager

    async def signup(
        self, name: str, email: str, password: str, confirm_password: str | None = None
    ) -> CreateUserResult:
        """Validate the form and create the account.

        Raises:
            ValidationError: On bad input
            DuplicateEmailError: If the email is already registered
        """
        validate_signup(
            name, email, password, password if confirm_password is None else confirm_password
        )
        try:
            user_data = UserCreate(name=name, email=email, password=password)
        except PydanticValidationError as e:
            raise ValidationError("Please enter a valid email address") from e

        user = await self.user_repo.create(user_data)
        return CreateUserResult(insert_id=user.id, user=user)

    async def login(self, email: str, password: str) -> SessionSnapshot:
        """Verify credentials and start a session.

        Raises:
            AuthenticationError: If the email is unknown or the password is wrong
        """
        if not email.strip() or not password:
            raise ValidationError("Please fill in all fields")
        user = await self.user_repo.verify_password(email, password)
        if user is None:
            logger.info("failed login attempt")
            raise AuthenticationError("Invalid email or password")
        return self.session_manager.start(user)

    def logout(self) -> bool:
        """End the session. Stored accounts are left untouched."""
        return self.session_manager.clear()

    def is_authenticated(self) -> bool:
        return self.session_manager.is_logged_in
