"""In-memory session backend used by the ``Safe*`` stores.

Nothing touches disk; records live for the lifetime of the backend instance.
The dictionary is not synchronised, matching the single-process usage of the
file-backed stores.
"""

from __future__ import annotations

from ...domain.models import Session


class MemorySessionBackend:
    """Keep whole session records in a plain dictionary."""

    name = "memory"

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def read(self, destination: str) -> Session | None:
        return self._sessions.get(destination)

    def write(self, destination: str, session: Session) -> None:
        self._sessions[destination] = session

    def delete(self, destination: str) -> bool:
        return self._sessions.pop(destination, None) is not None

    def destinations(self) -> list[str]:
        """Return the stored destination names in insertion order."""

        return list(self._sessions)

    def clear(self) -> None:
        self._sessions.clear()
