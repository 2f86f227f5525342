"""Utilities for password hashing and verification."""

from __future__ import annotations

import bcrypt

from memberhub.core.config import get_settings


def hash_password(password: str, rounds: int | None = None) -> str:
    """One-way bcrypt hash; the cost factor defaults to ``security.bcrypt_rounds``."""
    rounds = rounds or get_settings().security.bcrypt_rounds
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain text password against a stored bcrypt hash."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


__all__ = ["hash_password", "verify_password"]
