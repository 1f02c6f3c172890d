"""Logging setup for ASNINFO.

One set of handlers (a rich console handler on stderr, plus an optional log
file) serves the whole process: ASNINFO's own ``asninfo.*`` loggers, the
uvicorn server loggers while ``serve`` runs, and the boto3 client during
uploads. uvicorn must be started with ``log_config=None`` so it keeps these
handlers instead of installing its own.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler

_console = Console(stderr=True)
_handlers: List[logging.Handler] = []
_configured = False

# Logger trees sharing the ASNINFO handlers. ``None`` follows the configured
# level; a fixed level keeps chatty libraries at warnings and above.
ROUTED_LOGGERS: Dict[str, Optional[int]] = {
    "asninfo": None,
    "uvicorn": None,
    "botocore": logging.WARNING,
    "boto3": logging.WARNING,
}

# uvicorn attaches handlers to its children directly; they must propagate to
# the ``uvicorn`` logger instead.
_UVICORN_CHILDREN = ("uvicorn.error", "uvicorn.access")

_FILE_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"


def _build_handlers(level: int, log_file: Optional[str]) -> List[logging.Handler]:
    console_handler = RichHandler(
        console=_console,
        rich_tracebacks=True,
        show_path=False,
        markup=False,
    )
    console_handler.setLevel(level)
    handlers: List[logging.Handler] = [console_handler]

    if log_file:
        file_path = Path(log_file)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(file_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)
    return handlers


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    verbose: bool = False,
) -> None:
    """Route every :data:`ROUTED_LOGGERS` tree through one set of handlers.

    Safe to call more than once; handlers from an earlier call are closed
    and replaced.

    Args:
        level: Base log level (e.g. ``logging.DEBUG``).
        log_file: Optional filesystem path for a persistent log file.
        verbose: When ``True``, forces ``DEBUG`` level.
    """
    global _configured

    if verbose:
        level = logging.DEBUG

    for handler in _handlers:
        handler.close()
    _handlers[:] = _build_handlers(level, log_file)

    for name, fixed_level in ROUTED_LOGGERS.items():
        logger = logging.getLogger(name)
        logger.handlers[:] = list(_handlers)
        logger.setLevel(fixed_level if fixed_level is not None else level)
        logger.propagate = False

    for name in _UVICORN_CHILDREN:
        child = logging.getLogger(name)
        child.handlers.clear()
        child.propagate = True

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a named child logger under the ``asninfo`` hierarchy.

    Configures logging with defaults on first use if nothing has yet.

    Args:
        name: Logger name, typically ``__name__`` of the calling module.
    """
    if not _configured:
        configure_logging()

    if name.startswith("asninfo.") or name == "asninfo":
        return logging.getLogger(name)
    return logging.getLogger(f"asninfo.{name}")
