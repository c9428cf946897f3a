from __future__ import annotations

import secrets

import bcrypt

from staffscope.settings import get_settings


def _prepare_password(password: str) -> bytes:
    """Encode and truncate to 72 bytes (bcrypt limit)."""
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    """Hash a plaintext password with bcrypt; the plaintext is never stored."""

    salt = bcrypt.gensalt(rounds=get_settings().password_hash_rounds)
    hashed = bcrypt.hashpw(_prepare_password(password), salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(_prepare_password(plain_password), hashed_password.encode("utf-8"))


def generate_initial_password(length: int | None = None) -> str:
    """
    One-time credential for a newly provisioned employee.

    Handed back to the caller exactly once; the account is flagged
    `must_reset_password` until the employee sets their own.
    """

    n = length or get_settings().initial_password_length
    return secrets.token_urlsafe(n)[:n]
