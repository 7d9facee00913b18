"""Logging setup for the reposcope CLI.

Library modules only create ``logging.getLogger(__name__)`` loggers; handlers
are installed here, once, by the CLI entry point.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_NOISY_LOGGERS = ("litellm", "LiteLLM", "httpx", "httpcore")


def setup_logging(level: str = "INFO", console: Console | None = None) -> None:
    """Route log records through a RichHandler on stderr.

    Calling it again only changes the level.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
