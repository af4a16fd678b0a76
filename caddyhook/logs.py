from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"

logger = logging.getLogger("caddyhook")


def configure(level: str = "INFO") -> None:
    """Send caddyhook logs to stderr; stdout may belong to the hook runtime."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def log_event(level: str, message: str, **context: object) -> None:
    """Log one reconciliation event.

    Context is appended as ``key=value`` pairs, skipping ``None`` values:

        log_event("INFO", "Route created", route="shop.example.com", server="srv0")
    """
    lvl = logging.WARNING if level.upper() == "WARN" else getattr(logging, level.upper(), logging.INFO)
    extra = " ".join(f"{k}={v}" for k, v in context.items() if v is not None)
    logger.log(lvl, f"{message} ({extra})" if extra else message)
