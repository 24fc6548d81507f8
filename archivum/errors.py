"""
Error types and error logging for archivum.

The repository core raises the exceptions below for genuinely invalid
operations. Lookups that can legitimately miss return None or an empty
list instead.

Exception hierarchy:
    ArchivumError
    ├── NotFound            (also LookupError)
    ├── DuplicatePath       (also ValueError)
    ├── InvalidPath         (also ValueError)
    ├── InvalidId           (also ValueError)
    ├── InvalidTimestamp    (also ValueError)
    └── MalformedDocument   (also ValueError)
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path


class ArchivumError(Exception):
    """Base class for all repository errors."""


class NotFound(ArchivumError, LookupError):
    """A referenced node or tag does not exist where existence is required."""

    def __init__(self, kind: str, id: int):
        self.kind = kind
        self.id = id
        super().__init__(f"{kind} not found: {id}")


class DuplicatePath(ArchivumError, ValueError):
    """A tag upsert would give two tags the same path."""

    def __init__(self, path: tuple[str, ...], owner_id: int):
        self.path = path
        self.owner_id = owner_id
        super().__init__(f"Tag path {'/'.join(path)!r} already belongs to tag {owner_id}")


class InvalidPath(ArchivumError, ValueError):
    """A tag path is empty or has an empty / non-string segment."""


class InvalidId(ArchivumError, ValueError):
    """An id is not a positive integer."""


class InvalidTimestamp(ArchivumError, ValueError):
    """A node timestamp is not a string."""


class MalformedDocument(ArchivumError, ValueError):
    """A serialized repository document is structurally invalid."""


def _error_log_path(store_path=None) -> Path:
    """Resolve error log path: explicit store, then ARCHIVUM_STORE_PATH, then ~/.archivum."""
    if store_path is not None:
        return Path(store_path).expanduser() / "archivum-errors.log"
    store = os.environ.get("ARCHIVUM_STORE_PATH")
    if store:
        return Path(store) / "archivum-errors.log"
    return Path.home() / ".archivum" / "archivum-errors.log"


def log_exception(exc: Exception, context: str = "", store_path=None) -> Path:
    """
    Log exception with full traceback to file.

    Args:
        exc: The exception that occurred
        context: Optional context string (e.g., command name)
        store_path: Store directory to log into (default: from environment)

    Returns:
        Path to the error log file
    """
    log_path = _error_log_path(store_path)
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(f"\n{'='*60}\n")
            f.write(f"[{timestamp}]")
            if context:
                f.write(f" {context}")
            f.write("\n")
            f.write("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    except OSError:
        pass  # error log is best-effort
    return log_path
