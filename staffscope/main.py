from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse

from staffscope.db.init_db import init_db
from staffscope.errors import (
    AccessDenied,
    DepartmentNotFound,
    DuplicateAccount,
    EmployeeNotFound,
    InfrastructureError,
    ManagerAlreadyExists,
    PrincipalNotFound,
    RoleNotFound,
    StaffScopeError,
    ValidationError,
)
from staffscope.logging_config import configure_app_logging
from staffscope.routers import accounts, departments, employees, health, reports
from staffscope.security.access_config import load_access_config
from staffscope.security.dependencies import enforce_security
from staffscope.settings import get_settings

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[StaffScopeError], int] = {
    PrincipalNotFound: status.HTTP_401_UNAUTHORIZED,
    AccessDenied: status.HTTP_403_FORBIDDEN,
    RoleNotFound: status.HTTP_404_NOT_FOUND,
    DepartmentNotFound: status.HTTP_404_NOT_FOUND,
    EmployeeNotFound: status.HTTP_404_NOT_FOUND,
    DuplicateAccount: status.HTTP_409_CONFLICT,
    ManagerAlreadyExists: status.HTTP_409_CONFLICT,
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InfrastructureError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


async def handle_staffscope_error(request: Request, exc: StaffScopeError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, InfrastructureError) or status_code >= 500:
        logger.error("Request failed path=%s method=%s", request.url.path, request.method)
        return JSONResponse(status_code=status_code, content={"detail": "Internal server error"})

    logger.warning("%s path=%s method=%s: %s", type(exc).__name__, request.url.path, request.method, exc.message)
    body: dict[str, object] = {"detail": exc.message}
    if isinstance(exc, ValidationError) and exc.errors:
        body["errors"] = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors]
    return JSONResponse(status_code=status_code, content=body)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        configure_app_logging(settings.log_level)
        logger.info("App startup beginning")

        app.state.access_config = load_access_config(settings.resolved_access_config_path())
        logger.info("Loaded access config: %s", settings.resolved_access_config_path())
        init_db()
        logger.info("Database initialized (tables ensured + roles seeded)")

        yield

    # Global dependency: every route is guarded without per-handler code.
    app = FastAPI(title="staffscope", dependencies=[Depends(enforce_security)], lifespan=lifespan)
    app.add_exception_handler(StaffScopeError, handle_staffscope_error)

    app.include_router(health.router)
    app.include_router(accounts.router)
    app.include_router(employees.router)
    app.include_router(departments.router)
    app.include_router(reports.router)

    return app


app = create_app()
