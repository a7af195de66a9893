from __future__ import annotations

import re
import secrets

from fastapi_users.password import PasswordHelper

MIN_PASSWORD_LENGTH = 8

password_helper = PasswordHelper()

_STRENGTH_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"[A-Z]"), "Password must contain an uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain a lowercase letter"),
    (re.compile(r"\d"), "Password must contain a digit"),
    (re.compile(r"[^A-Za-z0-9]"), "Password must contain a symbol"),
]


def hash_password(password: str) -> str:
    return password_helper.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    verified, _ = password_helper.verify_and_update(password, hashed)
    return verified


def password_problems(password: str) -> list[str]:
    """List every strength rule ``password`` fails; empty means acceptable."""
    problems: list[str] = []
    if len(password) < MIN_PASSWORD_LENGTH:
        problems.append(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    for pattern, message in _STRENGTH_RULES:
        if not pattern.search(password):
            problems.append(message)
    return problems


def generate_token() -> str:
    # 32 bytes -> 64 hex characters
    return secrets.token_hex(32)
