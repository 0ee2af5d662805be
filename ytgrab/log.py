"""
Logging setup — routes the stdlib logging tree through rich.

Modules log via logging.getLogger(__name__); the web server and the CLI
call setup_logging() once at startup.
"""

import logging

from rich.logging import RichHandler


_configured = False


def setup_logging(level: str = "INFO") -> None:
    """Install a RichHandler on the root logger (idempotent)."""
    global _configured
    root = logging.getLogger()
    root.setLevel(level.upper())
    if _configured:
        return

    handler = RichHandler(rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
    _configured = True
