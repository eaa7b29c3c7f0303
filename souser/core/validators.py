"""Input validation helpers for user data."""
from __future__ import annotations
import re
from typing import Optional

from .kratos.exceptions import InvalidEmailError, InvalidPasswordError

EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
MIN_PASSWORD_LENGTH = 6


def validate_email(email: Optional[str]) -> str:
    """Validate email address.

    Args:
        email: Email address to validate

    Returns:
        The email, unchanged

    Raises:
        InvalidEmailError: If email is missing or malformed
    """
    if not email or not EMAIL_PATTERN.fullmatch(email):
        raise InvalidEmailError("Email address is invalid")
    return email


def validate_password(password: Optional[str]) -> str:
    """Validate password length.

    Raises:
        InvalidPasswordError: If password is shorter than the minimum
    """
    if password is None or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidPasswordError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password
