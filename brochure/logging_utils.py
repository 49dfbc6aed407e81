# brochure/logging_utils.py
"""
Logging helpers shared by the CLI and the content-feed scripts.

- `configure_logging` sets up console output for the CLI.
- `get_debug_logger` adds a rotating debug file (logs/brochure_debug.log) when
  BROCHURE_DEBUG is set.
- `redact` strips secret values (API keys, access tokens) from messages before
  they are logged; the feed scripts log request URLs that embed them.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

SECRET_ENV_VARS = ("GOOGLE_PLACES_API_KEY", "INSTAGRAM_ACCESS_TOKEN", "FACEBOOK_PAGE_TOKEN")

_DEBUG_LOGGER: logging.Logger | None = None


def debug_enabled() -> bool:
    return os.getenv("BROCHURE_DEBUG", "").strip().lower() in {"1", "true", "yes", "on"}


def redact(text: str, *secrets: str | None) -> str:
    """Replace known secret values (env + explicit) with [REDACTED]."""
    values = [os.getenv(k) for k in SECRET_ENV_VARS]
    values.extend(secrets)
    for val in values:
        if val:
            text = text.replace(val, "[REDACTED]")
    return text


def get_debug_logger() -> logging.Logger:
    """Create/reuse a rotating file logger for debug output."""
    global _DEBUG_LOGGER
    if _DEBUG_LOGGER is not None:
        return _DEBUG_LOGGER

    logger = logging.getLogger("brochure.debug")
    logger.setLevel(logging.DEBUG)

    # Avoid duplicate handlers if reloaded in REPL/tests
    if not logger.handlers:
        log_path = os.path.join("logs", "brochure_debug.log")
        try:
            os.makedirs(os.path.dirname(log_path), exist_ok=True)
            handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
        except OSError:
            # no file logging; console output keeps working
            handler = None
        if handler is not None:
            handler.setFormatter(
                logging.Formatter(
                    fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
                    datefmt="(%Y-%m-%d %H:%M:%S)",
                )
            )
            logger.addHandler(handler)

    _DEBUG_LOGGER = logger
    return logger


def configure_logging(verbose: bool = False) -> None:
    """Console logging for the CLI; DEBUG when verbose or BROCHURE_DEBUG is set."""
    level = logging.DEBUG if (verbose or debug_enabled()) else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)
    if debug_enabled():
        root = logging.getLogger("brochure")
        for h in get_debug_logger().handlers:
            if h not in root.handlers:
                root.addHandler(h)


__all__ = ["configure_logging", "get_debug_logger", "debug_enabled", "redact", "SECRET_ENV_VARS"]
