from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from staffscope.db.session import storage_errors
from staffscope.errors import PrincipalNotFound
from staffscope.models.security import User
from staffscope.security.access_config import AccessConfig
from staffscope.security.context import PrincipalContext
from staffscope.security.roles import operative_role

logger = logging.getLogger(__name__)


def extract_principal_id(request: Request, config: AccessConfig) -> str | None:
    """
    Principal context provider: read the principal identifier from the request.

    - Input: `Authorization: Bearer <username>`
    - The upstream gateway has already authenticated the caller; the bearer
      value is trusted as the principal identifier.
    """

    header_name = config.auth.principal_header
    bearer_prefix = config.auth.bearer_prefix

    raw = request.headers.get(header_name)
    if not raw:
        logger.info("Missing %s header (auth required) path=%s method=%s", header_name, request.url.path, request.method)
        return None

    prefix = f"{bearer_prefix} "
    if not raw.startswith(prefix):
        logger.warning("Invalid %s header format path=%s method=%s", header_name, request.url.path, request.method)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {header_name}. Expected '{bearer_prefix} <principal>'.",
        )

    principal_id = raw[len(prefix) :].strip()
    if not principal_id:
        logger.warning("Empty bearer value path=%s method=%s", request.url.path, request.method)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {header_name}. Missing principal after '{bearer_prefix}'.",
        )

    return principal_id


@storage_errors()
def load_principal(db: Session, principal_id: str) -> PrincipalContext:
    user = db.execute(
        select(User).where(User.username == principal_id).options(selectinload(User.roles))
    ).scalar_one_or_none()

    if user is None:
        raise PrincipalNotFound(f"No account registered for principal {principal_id!r}")

    names = frozenset(r.name for r in user.roles)
    return PrincipalContext(
        principal_id=user.username,
        user_id=user.id,
        role_tokens=names,
        operative_role=operative_role(names),
    )
