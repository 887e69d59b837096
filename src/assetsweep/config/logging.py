"""Logging setup for the assetsweep command line."""

from __future__ import annotations

import logging

from .env import optional_env_var
from .errors import ConfigurationError

LOG_LEVEL_ENV = "ASSETSWEEP_LOG_LEVEL"

# client libraries that log every request or heartbeat at INFO/DEBUG
_CHATTY_LOGGERS = ("httpx", "httpcore", "pymongo")


def resolve_log_level(level: int | str | None = None) -> int:
    """Turn a level name or number into a logging level.

    ``None`` reads ``ASSETSWEEP_LOG_LEVEL`` and falls back to INFO.
    """

    raw = level if level is not None else optional_env_var(LOG_LEVEL_ENV)
    if raw is None:
        return logging.INFO
    if isinstance(raw, int):
        return raw
    resolved = logging.getLevelNamesMapping().get(raw.strip().upper())
    if resolved is None:
        raise ConfigurationError(f"{LOG_LEVEL_ENV} must be a logging level name, got {raw!r}")
    return resolved


def configure_logging(*, level: int | str | None = None, force: bool = False) -> None:
    """Initialise the root logger for operator output.

    Per-object deletion lines are logged at INFO, so the HTTP and MongoDB client
    loggers are held at WARNING unless a more verbose level was asked for.
    """

    resolved = resolve_log_level(level)
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
