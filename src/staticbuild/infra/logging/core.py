from __future__ import annotations

"""
Build Logging Bootstrap.

The CLI configures logging once per run. Worker threads only enqueue
records; a single QueueListener thread formats them for stderr and the
optional rotating log file, and shutdown_logging() drains the queue before
the process exits.

Every handler installed here carries a marker attribute, so a forced
reconfiguration removes exactly the handlers this module added and leaves
pytest's or a host application's handlers in place.
"""

import atexit
import logging
import os
import queue
import sys
from dataclasses import dataclass
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from typing import List, Optional

# Attributes set on the root logger and on managed handlers
_CONFIGURED_FLAG_ATTR: str = "_staticbuild_configured"
_QUEUE_LISTENER_ATTR: str = "_staticbuild_queue_listener"
_HANDLER_TAG_ATTR: str = "_staticbuild_handler"

_CONSOLE_FMT = "%(levelname)s | %(message)s"
_FILE_FMT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging options derived from the command line.

    Attributes:
        level: Level name; 'DEBUG' under --verbose, unknown names mean INFO.
        console: Write records to stderr.
        log_file: Rotating log file from --log-file, if any.
        max_bytes: Size at which the log file rolls over.
        backup_count: Rolled-over files kept next to the log file.
    """
    level: str = "INFO"
    console: bool = True
    log_file: Optional[str] = None
    max_bytes: int = 2 * 1024 * 1024
    backup_count: int = 3


# ==============================================================================
# PUBLIC API
# ==============================================================================

def configure_logging(cfg: LoggingConfig, *, force: bool = False) -> logging.Logger:
    """
    Install the queue-based handlers on the root logger.

    A second call is a no-op unless force is set, in which case the previous
    listener is stopped and its handlers are replaced.

    Args:
        cfg: Logging options.
        force: Rebuild the handlers even if logging is already configured.

    Returns:
        logging.Logger: The root logger.
    """
    root = logging.getLogger()
    if getattr(root, _CONFIGURED_FLAG_ATTR, False) and not force:
        return root

    try:
        level = _parse_level(cfg.level)
        root.setLevel(level)
        _remove_our_handlers(root)
        _stop_existing_listener(root)

        sinks: List[logging.Handler] = []
        if cfg.console:
            console = _managed(logging.StreamHandler(sys.stderr))
            console.setLevel(level)
            console.setFormatter(logging.Formatter(_CONSOLE_FMT))
            sinks.append(console)
        if cfg.log_file:
            log_file = _open_log_file(cfg, level)
            if log_file is not None:
                sinks.append(log_file)
        if not sinks:
            return root

        log_queue: queue.Queue[logging.LogRecord] = queue.Queue(-1)
        listener = QueueListener(log_queue, *sinks, respect_handler_level=True)
        listener.start()

        root.addHandler(_managed(QueueHandler(log_queue)))
        setattr(root, _QUEUE_LISTENER_ATTR, listener)
        setattr(root, _CONFIGURED_FLAG_ATTR, True)
        atexit.register(_safe_stop_listener, listener)
        return root

    except Exception:
        # Keep the build visible on stderr even if the queue setup broke
        _remove_our_handlers(root)
        root.setLevel(logging.INFO)
        emergency = _managed(logging.StreamHandler(sys.stderr))
        emergency.setFormatter(logging.Formatter("CRITICAL FALLBACK | %(levelname)s | %(message)s"))
        root.addHandler(emergency)
        root.warning("Logging setup failed. Records go straight to stderr.")
        return root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def shutdown_logging() -> None:
    """Stop the active queue listener so every pending record is flushed."""
    _stop_existing_listener(logging.getLogger())


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _parse_level(level: str) -> int:
    value = logging.getLevelName(str(level or "INFO").strip().upper())
    return value if isinstance(value, int) else logging.INFO


def _managed(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_TAG_ATTR, True)
    return handler


def _open_log_file(cfg: LoggingConfig, level: int) -> Optional[logging.Handler]:
    """Create the rotating file handler, or warn on stderr and return None."""
    path = os.path.abspath(cfg.log_file)
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        handler = RotatingFileHandler(
            path,
            maxBytes=int(cfg.max_bytes),
            backupCount=int(cfg.backup_count),
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"WARNING: Cannot open log file '{cfg.log_file}': {e}\n")
        return None

    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FMT, datefmt=_DATE_FMT))
    return _managed(handler)


def _remove_our_handlers(root: logging.Logger) -> None:
    for h in list(root.handlers):
        if getattr(h, _HANDLER_TAG_ATTR, False):
            root.removeHandler(h)
            h.close()


def _stop_existing_listener(root: logging.Logger) -> None:
    listener = getattr(root, _QUEUE_LISTENER_ATTR, None)
    if listener:
        _safe_stop_listener(listener)
        setattr(root, _QUEUE_LISTENER_ATTR, None)
        setattr(root, _CONFIGURED_FLAG_ATTR, False)


def _safe_stop_listener(listener: Optional[QueueListener]) -> None:
    """Stop a listener unless atexit reaches it after shutdown_logging()."""
    if listener is not None and getattr(listener, "_thread", None) is not None:
        listener.stop()
