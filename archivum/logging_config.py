"""
Logging configuration for archivum.

The library itself only creates module loggers under ``archivum``.
Hosts (the CLI, or an application embedding an Archive) decide where
the output goes:

- configure_quiet_mode: the CLI default, warnings and above only
- enable_debug_mode: everything to stderr (``--verbose`` / ARCHIVUM_VERBOSE=1)
- configure_ops_log: a rotating operations log inside a store directory
"""

import logging
import sys
import warnings
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "archivum"
OPS_LOG_FILENAME = "archivum-ops.log"
OPS_LOG_MAX_BYTES = 1_000_000
OPS_LOG_BACKUPS = 3

_STDERR_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_OPS_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def _archivum_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def configure_quiet_mode(quiet: bool = True):
    """
    Hold archivum loggers at WARNING and hide Python warnings.

    Args:
        quiet: False undoes a previous quiet call.
    """
    if quiet:
        warnings.filterwarnings("ignore")
        _archivum_logger().setLevel(logging.WARNING)
    else:
        warnings.filterwarnings("default")
        _archivum_logger().setLevel(logging.NOTSET)


def _has_stderr_handler(logger: logging.Logger) -> bool:
    return any(
        isinstance(h, logging.StreamHandler) and h.stream is sys.stderr
        for h in logger.handlers
    )


def enable_debug_mode():
    """Send debug output from every logger to stderr."""
    warnings.filterwarnings("default")

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    if not _has_stderr_handler(root):
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(logging.DEBUG)
        stderr_handler.setFormatter(logging.Formatter(_STDERR_FORMAT, datefmt="%H:%M:%S"))
        root.addHandler(stderr_handler)

    _archivum_logger().setLevel(logging.DEBUG)


def configure_ops_log(store_path) -> RotatingFileHandler:
    """
    Attach a rotating operations log for one store directory.

    Opens, saves and restores are logged at INFO to
    ``{store_path}/archivum-ops.log``. The caller removes the handler
    again with remove_ops_log() (Archive.close does this).
    """
    path = Path(store_path) / OPS_LOG_FILENAME
    path.parent.mkdir(parents=True, exist_ok=True)
    ops_handler = RotatingFileHandler(
        str(path),
        maxBytes=OPS_LOG_MAX_BYTES,
        backupCount=OPS_LOG_BACKUPS,
        encoding="utf-8",
    )
    ops_handler.setLevel(logging.INFO)
    ops_handler.setFormatter(logging.Formatter(_OPS_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logger = _archivum_logger()
    logger.addHandler(ops_handler)
    # Quiet mode holds the logger at WARNING; the ops log needs INFO
    if logger.level == logging.NOTSET or logger.level > logging.INFO:
        logger.setLevel(logging.INFO)
    return ops_handler


def remove_ops_log(handler) -> None:
    """Detach and close a handler returned by configure_ops_log()."""
    if handler is None:
        return
    _archivum_logger().removeHandler(handler)
    handler.close()
