"""
# Logging Manager

Central factory for the application's loggers. Every module obtains its logger via
`get_logger()`, optionally with a bracketed prefix that tags each line with the
subsystem that produced it:

```python
from betcompare_api.managers.logging_manager import get_logger

logger = get_logger(prefix="[Bookmaker Service]")
logger.info("Created bookmaker %s", slug)
# 2026-01-01 12:00:00,000 INFO betcompare_api [Bookmaker Service] Created bookmaker betway
```

The root handler is configured once, on first use. The level follows `DEBUG`
in the settings unless `LOG_LEVEL` is set in the environment.
"""

import logging
import os
import sys
from typing import Dict, Optional

from betcompare_api.config import settings

DEFAULT_LOGGER_NAME = "betcompare_api"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_configured = False
_prefixed_loggers: Dict[str, logging.LoggerAdapter] = {}


class PrefixAdapter(logging.LoggerAdapter):
    """Logger adapter that prepends a fixed prefix to every message."""

    def process(self, msg, kwargs):
        return f"{self.extra['prefix']} {msg}", kwargs


def _configure_root() -> None:
    global _configured
    if _configured:
        return

    level_name = os.environ.get("LOG_LEVEL") or ("DEBUG" if settings.DEBUG else "INFO")
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    base = logging.getLogger(DEFAULT_LOGGER_NAME)
    base.setLevel(getattr(logging, level_name.upper(), logging.INFO))
    if not base.handlers:
        base.addHandler(handler)
    base.propagate = False
    _configured = True


def get_logger(name: Optional[str] = None, prefix: str = ""):
    """
    Return an application logger.

    Args:
        name: Dotted logger name. Defaults to the application root logger.
        prefix: Optional tag such as `"[DATABASE]"` prepended to every message.

    Returns:
        A `logging.Logger`, or a `PrefixAdapter` wrapping one when `prefix` is given.
    """
    _configure_root()
    logger_name = name or DEFAULT_LOGGER_NAME
    if not logger_name.startswith(DEFAULT_LOGGER_NAME):
        logger_name = f"{DEFAULT_LOGGER_NAME}.{logger_name}"
    logger = logging.getLogger(logger_name)
    if not prefix:
        return logger

    key = f"{logger_name}:{prefix}"
    if key not in _prefixed_loggers:
        _prefixed_loggers[key] = PrefixAdapter(logger, {"prefix": prefix})
    return _prefixed_loggers[key]
