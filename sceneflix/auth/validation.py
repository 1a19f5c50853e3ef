# sceneflix/auth/validation.py
"""
Local input checks for the auth forms.

Every function raises ValidationError with a user-facing message and
never touches the network.
"""
from __future__ import annotations

import re

from sceneflix.errors import ValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6


def validate_email(email: str | None) -> str:
    email = (email or "").strip()
    if not email:
        raise ValidationError("Email is required", field="email")
    if not EMAIL_RE.match(email):
        raise ValidationError("Please enter a valid email", field="email")
    return email


def validate_password(password: str | None) -> str:
    password = password or ""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            field="password",
        )
    return password


def validate_login(email: str | None, password: str | None) -> tuple[str, str]:
    email = (email or "").strip()
    if not email or not password:
        raise ValidationError("Please fill in all fields")
    return email, password


def validate_signup(
    email: str | None,
    password: str | None,
    full_name: str | None,
    confirm_password: str | None = None,
) -> tuple[str, str, str]:
    full_name = (full_name or "").strip()
    if not full_name:
        raise ValidationError("Full name is required", field="full_name")
    email = validate_email(email)
    password = validate_password(password)
    if confirm_password is not None and password != confirm_password:
        raise ValidationError("Passwords do not match", field="confirm_password")
    return email, password, full_name
