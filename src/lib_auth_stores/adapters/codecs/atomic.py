"""Crash-consistent filesystem writes.

Every writer in the package goes through :func:`write_atomic`: the payload is
written to ``<file>.tmp`` and renamed over the target with :func:`os.replace`,
so readers observe either the old file or the new one, never a partial write.
"""

from __future__ import annotations

import contextlib
import os
from pathlib import Path

from ...domain.errors import StorageError
from ...observability import log_debug, log_error

TMP_SUFFIX = ".tmp"


def ensure_directory(directory: Path) -> None:
    """Create *directory* and its parents; an existing directory is fine."""

    try:
        directory.mkdir(parents=True, exist_ok=True)
    except FileExistsError:
        # A racing writer created it between the existence check and mkdir.
        if not directory.is_dir():
            raise StorageError("mkdir", f"Path exists and is not a directory: {directory}", str(directory)) from None
    except OSError as exc:
        log_error("directory_create_failed", path=str(directory), error=str(exc))
        raise StorageError("mkdir", f"Failed to create directory {directory}: {exc}", str(directory)) from exc


def write_atomic(path: Path | str, text: str) -> None:
    """Replace *path* with *text* using temp-file-then-rename.

    Raises
    ------
    StorageError
        When the directory cannot be created, the temp file cannot be written,
        or the rename fails. The temp file is removed on failure and the
        previous content of *path* stays intact.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> target = Path(tmp.name) / 'nested' / 'TRIAL.env'
    >>> write_atomic(target, 'SAP_URL=https://a\\n')
    >>> target.read_text(encoding='utf-8')
    'SAP_URL=https://a\\n'
    >>> tmp.cleanup()
    """

    target = Path(path)
    ensure_directory(target.parent)
    temp = target.with_name(target.name + TMP_SUFFIX)
    try:
        with temp.open("w", encoding="utf-8", newline="\n") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp, target)
    except OSError as exc:
        with contextlib.suppress(OSError):
            temp.unlink(missing_ok=True)
        log_error("file_write_failed", path=str(target), error=str(exc))
        raise StorageError("write", f"Failed to write {target}: {exc}", str(target)) from exc
    log_debug("file_written", path=str(target), size=len(text))


def remove_file(path: Path | str) -> bool:
    """Delete *path*; return ``False`` when it did not exist."""

    target = Path(path)
    try:
        target.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        log_error("file_delete_failed", path=str(target), error=str(exc))
        raise StorageError("unlink", f"Failed to delete {target}: {exc}", str(target)) from exc
    log_debug("file_deleted", path=str(target))
    return True
