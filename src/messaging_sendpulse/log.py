"""
Logging Setup

Modules log through `logging.getLogger(__name__)` with structured context
in `extra={...}`. setup_logging() is called once by entry points (the CLI);
library code never configures handlers.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# Attributes every LogRecord has; anything else came from `extra`
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}


class ExtraFormatter(logging.Formatter):
    """Appends `extra` fields to the message as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        extras = {k: v for k, v in vars(record).items() if k not in _RESERVED_ATTRS}
        if not extras:
            return message
        context = " ".join(f"{key}={value}" for key, value in sorted(extras.items()))
        return f"{message} [{context}]"


def setup_logging(level: str = "INFO", rich_output: bool = True) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level name
        rich_output: Use rich's console handler instead of a plain stream

    Raises:
        ValueError: If the level is not a valid log level name
    """
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}. Valid: {', '.join(sorted(VALID_LOG_LEVELS))}")

    handler: logging.Handler
    if rich_output:
        handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
        handler.setFormatter(ExtraFormatter("%(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(ExtraFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    root = logging.getLogger()
    root.setLevel(level_upper)
    root.handlers = [handler]

    # httpx logs every request at INFO, including URLs with phone numbers
    logging.getLogger("httpx").setLevel(logging.WARNING)
