from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from staffscope.db.session import get_db
from staffscope.errors import AccessDenied
from staffscope.security.access_config import AccessConfig
from staffscope.security.auth import extract_principal_id, load_principal
from staffscope.security.context import Allow, PrincipalContext
from staffscope.security.decisions import Operation, is_authorized


def get_access_config(request: Request) -> AccessConfig:
    config = getattr(request.app.state, "access_config", None)
    if config is None:
        raise RuntimeError("Access config not loaded. Did app startup run?")
    return config


def get_current_principal(request: Request) -> PrincipalContext:
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return principal


def get_decision(request: Request) -> Allow:
    decision = getattr(request.state, "decision", None)
    if decision is None:
        raise RuntimeError("Route has no guarded operation configured")
    return decision


def enforce_security(
    request: Request,
    config: AccessConfig = Depends(get_access_config),
    db: Session = Depends(get_db, use_cache=False),
) -> None:
    """
    Global security dependency.

    Runs after routing, so it can read both the YAML route rule and the
    `@guarded` decorator metadata, plus the `id` path parameter that READ_BY_ID
    decisions need. Denied requests never reach the handler.
    """

    path = request.url.path
    method = request.method.upper()

    rule = config.match(path, method)

    endpoint = request.scope.get("endpoint")
    decorator_operation = getattr(endpoint, "__guarded_operation__", None) if endpoint else None
    operation: Operation | None = decorator_operation or rule.operation

    auth_required = rule.auth_required or operation is not None
    if not auth_required:
        return

    principal_id = extract_principal_id(request, config)
    if principal_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing principal")

    principal = load_principal(db, principal_id)
    request.state.principal = principal

    if rule.required_roles and principal.operative_role not in rule.required_roles:
        raise AccessDenied(f"Insufficient role. Required one of: {sorted(r.value for r in rule.required_roles)}")

    if operation is None:
        return

    target_ref = _target_ref(request) if operation.needs_target else None
    decision = is_authorized(db, principal.principal_id, operation, target_ref)
    if not decision.allowed:
        raise AccessDenied(decision.reason)
    request.state.decision = decision


def _target_ref(request: Request) -> int | None:
    raw = request.path_params.get("id")
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None
