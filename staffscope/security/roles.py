"""
Role tokens and operative-role resolution.

The token set is closed. A principal may hold several tokens in storage; every
decision uses exactly one operative role, chosen by fixed precedence
ADMIN > MANAGER > EMPLOYEE. Anything else resolves to UNKNOWN, which has no
privileges beyond reading its own record.
"""

from __future__ import annotations

import enum
import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from staffscope.db.session import storage_errors
from staffscope.errors import PrincipalNotFound
from staffscope.models.security import Role, User, user_roles

logger = logging.getLogger(__name__)

_ROLE_PREFIX = "ROLE_"


class RoleToken(str, enum.Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, raw: str | None) -> RoleToken:
        """
        Normalize a stored or client-supplied role name.

        Accepts any case and an optional `ROLE_` prefix; unrecognized names
        map to UNKNOWN.
        """

        if not raw:
            return cls.UNKNOWN
        name = raw.strip().upper()
        if name.startswith(_ROLE_PREFIX):
            name = name[len(_ROLE_PREFIX) :]
        try:
            token = cls(name)
        except ValueError:
            return cls.UNKNOWN
        return token

    @classmethod
    def assignable(cls) -> tuple[RoleToken, ...]:
        """Tokens that exist as rows in the roles table."""
        return (cls.ADMIN, cls.MANAGER, cls.EMPLOYEE)


# Lower index wins.
ROLE_PRECEDENCE: tuple[RoleToken, ...] = (RoleToken.ADMIN, RoleToken.MANAGER, RoleToken.EMPLOYEE)


def operative_role(tokens: Iterable[RoleToken | str]) -> RoleToken:
    parsed = {t if isinstance(t, RoleToken) else RoleToken.parse(t) for t in tokens}
    for candidate in ROLE_PRECEDENCE:
        if candidate in parsed:
            return candidate
    return RoleToken.UNKNOWN


def role_names_for(db: Session, principal_id: str) -> list[str]:
    """Stored role names for a principal; raises PrincipalNotFound for unknown ids."""

    user_pk = db.execute(select(User.id).where(User.username == principal_id)).scalar_one_or_none()
    if user_pk is None:
        raise PrincipalNotFound(f"No account registered for principal {principal_id!r}")

    stmt = (
        select(Role.name)
        .join(user_roles, user_roles.c.role_id == Role.id)
        .where(user_roles.c.user_id == user_pk)
        .order_by(Role.name)
    )
    return list(db.scalars(stmt).all())


@storage_errors()
def resolve_role(db: Session, principal_id: str) -> RoleToken:
    names = role_names_for(db, principal_id)
    role = operative_role(names)
    if len(names) > 1:
        logger.debug("Principal %s holds roles=%s; operative role=%s", principal_id, names, role.value)
    return role
