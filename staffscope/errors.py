"""
Typed outcomes raised by the access core.

All of these are expected results that the HTTP layer translates into
responses (see `staffscope.main`). Only `InfrastructureError` signals a
storage failure, and it never carries the underlying driver message.
"""

from __future__ import annotations


class StaffScopeError(Exception):
    """Base class for every error raised by this package."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PrincipalNotFound(StaffScopeError):
    """The principal identifier has no registered account."""


class RoleNotFound(StaffScopeError):
    pass


class DepartmentNotFound(StaffScopeError):
    pass


class EmployeeNotFound(StaffScopeError):
    pass


class DuplicateAccount(StaffScopeError):
    """A principal already exists for the requested identifier."""


class ManagerAlreadyExists(StaffScopeError):
    """The department already has a manager bound to it."""


class AccessDenied(StaffScopeError):
    pass


class ValidationError(StaffScopeError):
    """Input failed schema or business validation."""

    def __init__(self, message: str, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class InfrastructureError(StaffScopeError):
    """Opaque wrapper for storage-layer failures."""
