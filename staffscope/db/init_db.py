from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from staffscope.db.base import Base
from staffscope.db.session import SessionLocal, engine
from staffscope.models import hr as _hr  # noqa: F401  (register tables)
from staffscope.models.security import Role, User
from staffscope.security.passwords import hash_password
from staffscope.security.roles import RoleToken
from staffscope.settings import get_settings

logger = logging.getLogger(__name__)

ROLE_DESCRIPTIONS = {
    RoleToken.ADMIN: "System administrator",
    RoleToken.MANAGER: "Department manager",
    RoleToken.EMPLOYEE: "Regular employee",
}


def init_db() -> None:
    """
    Create tables, seed the closed role set, and create the bootstrap admin
    when `STAFFSCOPE_BOOTSTRAP_ADMIN_USERNAME` / `_PASSWORD` are set.
    """

    Base.metadata.create_all(bind=engine)

    settings = get_settings()
    with SessionLocal() as db:
        seed_roles(db)
        if settings.bootstrap_admin_username and settings.bootstrap_admin_password:
            ensure_admin(db, settings.bootstrap_admin_username, settings.bootstrap_admin_password)
        db.commit()


def seed_roles(db: Session) -> None:
    existing = set(db.scalars(select(Role.name)).all())
    for token in RoleToken.assignable():
        if token.value not in existing:
            db.add(Role(name=token.value, description=ROLE_DESCRIPTIONS[token]))
    db.flush()


def ensure_admin(db: Session, username: str, password: str) -> User:
    user = db.scalars(select(User).where(User.username == username)).first()
    if user is not None:
        return user

    admin_role = db.scalars(select(Role).where(Role.name == RoleToken.ADMIN.value)).one()
    user = User(username=username, password_hash=hash_password(password), must_reset_password=True)
    user.roles.append(admin_role)
    db.add(user)
    db.flush()
    logger.info("Created bootstrap admin principal %s", username)
    return user
