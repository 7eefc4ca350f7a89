from __future__ import annotations

import logging


def configure_app_logging(level: str = "INFO") -> None:
    """
    Minimal logging configuration for this package.

    Notes:
    - Uses stdlib logging; the hosting server (e.g. Uvicorn) owns the handlers.
    - Sets the level for ``jwtazure.*`` loggers, which all inherit from here.
    - Set ``JWTAZURE_LOG_LEVEL=DEBUG`` to see key refreshes and accepted tokens.
    """

    normalized = level.upper()
    logging.getLogger("jwtazure").setLevel(normalized)
    logging.getLogger("jwtazure").propagate = True
