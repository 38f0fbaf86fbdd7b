"""
Password hashing (argon2id) and the signup password policy.

Plaintext passwords only ever exist in request bodies and in the arguments
to these functions; nothing here logs them.
"""

from __future__ import annotations

from collections.abc import Callable

import argon2

from myescrow.config import get_settings

_hasher = argon2.PasswordHasher(
    time_cost=2,
    memory_cost=64 * 1024,  # KiB
    parallelism=1,
    hash_len=32,
    salt_len=16,
    type=argon2.Type.ID,
)

COMMON_PASSWORDS = frozenset({
    "password",
    "password1",
    "password123",
    "password123!",
    "12345678",
    "123456789",
    "qwerty123",
    "letmein123",
    "welcome123",
    "changeme123!",
})

# (check, message) pairs applied in order once the length bounds pass.
_CHARACTER_RULES: tuple[tuple[Callable[[str], bool], str], ...] = (
    (lambda p: any(c.isupper() for c in p), "Password must include at least one uppercase letter."),
    (lambda p: any(c.islower() for c in p), "Password must include at least one lowercase letter."),
    (lambda p: any(c.isdigit() for c in p), "Password must include at least one number."),
    (lambda p: not p.isalnum(), "Password must include at least one symbol."),
    (lambda p: p.lower() not in COMMON_PASSWORDS, "Password is too common. Pick something more unique."),
)


class PasswordStrengthError(ValueError):
    """Password rejected by the signup policy."""


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """True on match. A mismatch or an unreadable stored hash is False, never an exception."""
    try:
        return _hasher.verify(password_hash, password)
    except (argon2.exceptions.VerifyMismatchError, argon2.exceptions.InvalidHashError):
        return False


def check_needs_rehash(password_hash: str) -> bool:
    """Stored hash was produced with different hasher parameters."""
    return _hasher.check_needs_rehash(password_hash)


def validate_password_strength(password: str) -> None:
    """
    Enforce the signup policy.

    Length bounds come from ``password_min_length`` / ``password_max_length``;
    the password must mix upper case, lower case, digits and a symbol and
    must not be a well-known password.

    Raises:
        PasswordStrengthError: With the first rule the password breaks.
    """
    settings = get_settings()
    if not password.strip():
        msg = "Password cannot be empty."
        raise PasswordStrengthError(msg)
    if len(password) < settings.password_min_length:
        msg = f"Password must be at least {settings.password_min_length} characters long."
        raise PasswordStrengthError(msg)
    if len(password) > settings.password_max_length:
        msg = f"Password must not exceed {settings.password_max_length} characters."
        raise PasswordStrengthError(msg)
    for check, message in _CHARACTER_RULES:
        if not check(password):
            raise PasswordStrengthError(message)
