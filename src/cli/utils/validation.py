"""Input validation utilities for CLI commands."""

import re

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_name(name: str) -> str:
    """Validate and return a display name. Raises ValueError if invalid."""
    if not name or not name.strip():
        raise ValueError("Name cannot be empty")
    name = name.strip()
    if len(name) > 256:
        raise ValueError("Name cannot exceed 256 characters")
    return name


def validate_email(email: str) -> str:
    """Validate and return an email address. Raises ValueError if invalid."""
    if not email or not email.strip():
        raise ValueError("Email cannot be empty")
    email = email.strip()
    if not _EMAIL_PATTERN.match(email):
        raise ValueError(f"'{email}' is not a valid email address")
    return email


def validate_base_url(url: str) -> str:
    """Validate and return a share base URL. Raises ValueError if invalid."""
    if not url or not url.strip():
        raise ValueError("Base URL cannot be empty")
    url = url.strip().rstrip("/")
    if not url.startswith(("https://", "http://")):
        raise ValueError("Base URL must start with https:// or http://")
    if len(url) > 2048:
        raise ValueError("Base URL cannot exceed 2048 characters")
    return url


def validate_user_id(user_id: str) -> str:
    """Validate and return a user ID. Raises ValueError if invalid."""
    if not user_id or not user_id.strip():
        raise ValueError("User ID cannot be empty")
    return user_id.strip()
