"""Account Rules — pure field checks for registration and profile updates.

Invariants:
    - Emails are compared and stored lower-cased and stripped
    - Passwords are 6-72 characters (72 is the bcrypt input limit)
    - Check functions raise ValueError so Pydantic validators surface them as 400s
"""

import re

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 72


def normalize_email(email: str) -> str:
    return email.strip().lower()


def check_email(email: str) -> str:
    """Normalize and validate a local@domain.tld address."""
    email = normalize_email(email)
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")
    return email


def check_password(password: str) -> str:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
        )
    if len(password.encode("utf-8")) > MAX_PASSWORD_LENGTH:
        raise ValueError(
            f"Password must be at most {MAX_PASSWORD_LENGTH} bytes long",
        )
    return password


def check_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValueError("Name cannot be empty")
    return name
