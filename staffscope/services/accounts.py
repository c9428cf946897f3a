"""Credential store: principal lookup, persistence and self-registration."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from staffscope.db.session import atomic, storage_errors, violates_constraint
from staffscope.errors import DuplicateAccount, PrincipalNotFound, ValidationError
from staffscope.models.security import User
from staffscope.security.passwords import hash_password

logger = logging.getLogger(__name__)

USERNAME_CONSTRAINT_MARKERS = ("uq_users_username", "users.username")


@storage_errors()
def find_principal(db: Session, username: str) -> User | None:
    stmt = select(User).where(User.username == username).options(selectinload(User.roles))
    return db.scalars(stmt).first()


def save_principal(db: Session, user: User) -> User:
    """
    Add a new principal to the session and flush it.

    Runs inside the caller's transaction. Raises DuplicateAccount when the
    username is taken, whether seen up front or reported by the unique
    constraint (two concurrent signups).
    """

    if find_principal(db, user.username) is not None:
        logger.warning("Principal already exists: %s", user.username)
        raise DuplicateAccount(f"An account already exists for {user.username}")

    db.add(user)
    try:
        db.flush()
    except IntegrityError as exc:
        if violates_constraint(exc, *USERNAME_CONSTRAINT_MARKERS):
            raise DuplicateAccount(f"An account already exists for {user.username}") from exc
        raise
    return user


def delete_principal(db: Session, principal_pk: int) -> None:
    """Remove a principal row; runs inside the caller's transaction."""

    user = db.get(User, principal_pk)
    if user is None:
        raise PrincipalNotFound(f"No principal with id {principal_pk}")
    # ORM delete so the user_roles link rows go with it.
    db.delete(user)
    db.flush()


def register_principal(db: Session, username: str, password: str) -> User:
    """
    Self-service signup.

    The new account holds no role, so its operative role is UNKNOWN until an
    administrator provisions it as an employee.
    """

    username = (username or "").strip()
    if not username:
        raise ValidationError("Username is required")
    if not password:
        raise ValidationError("Password is required")

    logger.info("Registering principal: %s", username)
    with atomic(db):
        user = save_principal(db, User(username=username, password_hash=hash_password(password)))
    db.refresh(user)
    return user
