from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from staffscope.security.roles import RoleToken


@dataclass(frozen=True)
class Unscoped:
    """Visibility over every department."""


@dataclass(frozen=True)
class RestrictedToDepartment:
    department_id: int


Scope = Union[Unscoped, RestrictedToDepartment]

UNSCOPED = Unscoped()


@dataclass(frozen=True)
class Allow:
    scope: Scope = UNSCOPED
    # Set for READ_OWN_PROFILE: the employee the principal owns.
    employee_id: int | None = None

    @property
    def allowed(self) -> bool:
        return True


@dataclass(frozen=True)
class Deny:
    reason: str = "Access denied"

    @property
    def allowed(self) -> bool:
        return False


Decision = Union[Allow, Deny]


@dataclass(frozen=True)
class PrincipalContext:
    """
    Per-request principal, as supplied by the principal context provider.

    Attached to `request.state.principal`; small and immutable so it can be
    passed into services as-is.
    """

    principal_id: str
    user_id: int
    role_tokens: frozenset[str]
    operative_role: RoleToken
