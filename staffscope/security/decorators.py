from __future__ import annotations

from collections.abc import Callable

from staffscope.security.decisions import Operation


def guarded(operation: Operation) -> Callable:
    """
    Mark an endpoint with the guarded operation it performs.

    - The decorator does NOT authorize by itself.
    - It attaches metadata that the global `enforce_security` dependency reads
      after routing; decorator metadata takes precedence over the YAML rule.
    """

    def decorator(fn: Callable) -> Callable:
        setattr(fn, "__guarded_operation__", operation)
        return fn

    return decorator
