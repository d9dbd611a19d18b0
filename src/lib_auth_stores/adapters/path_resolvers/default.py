"""Directory search rules for credential files.

Purpose
-------
Implement the :class:`lib_auth_stores.application.ports.PathResolver`
protocol. This adapter is the only component that knows where service keys and
session files live and how the ``AUTH_BROKER_PATH`` override is spelled on each
platform.

Contents
--------
* :func:`resolve_search_paths` – ordered, deduplicated list of directories.
* :func:`find_file_in_paths` – first existing file within those directories.
* :class:`SearchPathResolver` – stateful wrapper used by the stores.

System Role
-----------
Priority, highest first: explicit constructor path(s), then the
``AUTH_BROKER_PATH`` environment variable, then the current working directory
(only when nothing else yields a directory). Writes always target the first
directory.
"""

from __future__ import annotations

import os
import re
import sys
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from ...observability import log_debug

#: Environment variable holding extra search directories.
AUTH_BROKER_PATH_VAR = "AUTH_BROKER_PATH"

PathInput = str | os.PathLike[str] | Iterable[str | os.PathLike[str]] | None

_POSIX_SEPARATORS = re.compile(r"[:;]")


def resolve_search_paths(
    paths: PathInput = None,
    *,
    env: Mapping[str, str] | None = None,
    cwd: Path | str | None = None,
    platform: str | None = None,
    env_var: str = AUTH_BROKER_PATH_VAR,
) -> list[Path]:
    """Return absolute search directories ordered by priority.

    Parameters
    ----------
    paths:
        A single directory or an iterable of directories supplied by the caller.
    env:
        Environment mapping; defaults to :data:`os.environ`.
    cwd:
        Working directory used for relative entries and as the last resort.
    platform:
        ``sys.platform`` clone. On Windows the override is split on ``;`` only so
        drive letters survive; elsewhere on both ``:`` and ``;``.
    env_var:
        Name of the override variable.

    Examples
    --------
    >>> resolve_search_paths('/b', env={'AUTH_BROKER_PATH': '/a:/b'}, cwd='/tmp', platform='linux')
    [PosixPath('/b'), PosixPath('/a')]
    >>> resolve_search_paths(env={}, cwd='/work', platform='linux')
    [PosixPath('/work')]
    """

    environ = os.environ if env is None else env
    base = Path(cwd) if cwd is not None else Path.cwd()
    is_windows = (platform or sys.platform).startswith("win")

    candidates = [*_explicit_entries(paths), *_env_entries(environ.get(env_var, ""), is_windows)]
    if not candidates:
        candidates = [str(base)]

    resolved: list[Path] = []
    seen: set[str] = set()
    for entry in candidates:
        normalized = _normalize(entry, base)
        if normalized in seen:
            continue
        seen.add(normalized)
        resolved.append(Path(normalized))
    log_debug("search_paths_resolved", count=len(resolved), paths=[str(path) for path in resolved])
    return resolved


def find_file_in_paths(file_name: str, search_paths: Sequence[Path]) -> Path | None:
    """Return the first existing regular file named *file_name*.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> root = Path(tmp.name)
    >>> _ = (root / 'TRIAL.env').write_text('SAP_URL=https://a', encoding='utf-8')
    >>> find_file_in_paths('TRIAL.env', [root / 'missing', root]) == root / 'TRIAL.env'
    True
    >>> find_file_in_paths('OTHER.env', [root]) is None
    True
    >>> tmp.cleanup()
    """

    for directory in search_paths:
        candidate = directory / file_name
        if candidate.is_file():
            return candidate
    return None


class SearchPathResolver:
    """Resolve credential files across the configured directories.

    Why
    ----
    Stores need the same directory list for reads, writes, and error messages;
    resolving once at construction keeps them consistent for the lifetime of a
    store.
    """

    def __init__(
        self,
        paths: PathInput = None,
        *,
        env: Mapping[str, str] | None = None,
        cwd: Path | str | None = None,
        platform: str | None = None,
    ) -> None:
        self._search_paths = tuple(resolve_search_paths(paths, env=env, cwd=cwd, platform=platform))

    @property
    def search_paths(self) -> list[Path]:
        """Return a copy of the resolved directories, highest priority first."""

        return list(self._search_paths)

    def find(self, file_name: str) -> Path | None:
        """Return the highest-priority existing *file_name* or ``None``."""

        return find_file_in_paths(file_name, self._search_paths)

    def find_all(self, file_name: str) -> list[Path]:
        """Return every existing copy of *file_name* in priority order."""

        return [directory / file_name for directory in self._search_paths if (directory / file_name).is_file()]

    def write_path(self, file_name: str) -> Path:
        """Return the location new files are written to (the first directory)."""

        return self._search_paths[0] / file_name


def _explicit_entries(paths: PathInput) -> list[str]:
    """Flatten the caller-supplied path argument into strings."""

    if paths is None:
        return []
    if isinstance(paths, (str, os.PathLike)):
        items: Iterable[str | os.PathLike[str]] = [paths]
    else:
        items = paths
    return [os.fspath(item) for item in items if os.fspath(item).strip()]


def _env_entries(raw: str, is_windows: bool) -> list[str]:
    """Split the override variable into non-blank entries."""

    parts = raw.split(";") if is_windows else _POSIX_SEPARATORS.split(raw)
    return [part.strip() for part in parts if part.strip()]


def _normalize(entry: str, base: Path) -> str:
    """Return the absolute, normalised form of *entry* (symlinks untouched)."""

    candidate = Path(os.path.expanduser(entry))
    if not candidate.is_absolute():
        candidate = base / candidate
    return os.path.normpath(str(candidate))
