from __future__ import annotations

import logging


def configure_app_logging(level: str = "INFO") -> None:
    """
    Set the level for the `staffscope` logger tree.

    Notes:
    - Plain stdlib logging; uvicorn (or the host process) owns the handlers.
    - Set `STAFFSCOPE_LOG_LEVEL=DEBUG` to see individual authorization decisions.
    """

    normalized = level.upper()
    logging.getLogger("staffscope").setLevel(normalized)
    logging.getLogger("staffscope").propagate = True
