"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contracts adapters must satisfy so the session-store
engine and the service-key store can orchestrate behaviour without depending on
concrete implementations.

Contents
--------
* :class:`PathResolver` – locates credential files across search directories.
* :class:`ServiceKeyParser` – recognises and normalises one service-key shape.
* :class:`JsonLoader` – reads a JSON object from disk.
* :class:`SessionBackend` – persists whole session records per destination.

System Role
-----------
These protocols enforce Dependency Inversion. File-backed and in-memory stores
differ only in the :class:`SessionBackend` they are composed with.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..domain.models import ServiceKey, Session


@runtime_checkable
class PathResolver(Protocol):
    """Locate credential files across an ordered list of directories.

    Methods
    -------
    :meth:`find`
        Highest-priority existing file.
    :meth:`find_all`
        Every existing copy in priority order.
    :meth:`write_path`
        Where new files are written (always the first directory).
    """

    @property
    def search_paths(self) -> list[Path]:
        """Return the directories, highest priority first."""

    def find(self, file_name: str) -> Path | None:
        """Return the first existing *file_name* or ``None``."""

    def find_all(self, file_name: str) -> list[Path]:
        """Return every existing *file_name* in priority order."""

    def write_path(self, file_name: str) -> Path:
        """Return the path a new *file_name* is written to."""


@runtime_checkable
class ServiceKeyParser(Protocol):
    """Recognise and normalise a single service-key shape.

    Why
    ----
    Adding a platform means adding a parser, not touching the stores.
    """

    name: str
    shape: str

    def can_parse(self, raw: Any) -> bool:
        """Return ``True`` when *raw* has this parser's shape."""

    def parse(self, raw: Mapping[str, Any], *, source: str | None = None) -> ServiceKey:
        """Return the canonical key or raise ``InvalidConfig`` / ``FormatMismatch``."""


@runtime_checkable
class JsonLoader(Protocol):
    """Read a JSON object from disk."""

    def load(self, path: Path | str) -> dict[str, Any] | None:
        """Return the object at *path*, ``None`` when missing, or raise ``ParseError``."""


@runtime_checkable
class SessionBackend(Protocol):
    """Persist whole session records keyed by destination.

    Why
    ----
    The engine owns merge and auth-mode rules; a backend only stores what it is
    handed. Every write is a full overwrite of the destination's record.
    """

    name: str

    def read(self, destination: str) -> Session | None:
        """Return the stored record or ``None`` when absent."""

    def write(self, destination: str, session: Session) -> None:
        """Replace the destination's record with *session*."""

    def delete(self, destination: str) -> bool:
        """Remove the record; return ``False`` when nothing was stored."""
