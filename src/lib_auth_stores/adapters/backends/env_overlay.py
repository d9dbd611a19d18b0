"""Read-only env file with an in-memory overlay.

Purpose
-------
Serve a single, explicitly named ``.env`` file (for example the file passed to
the broker as ``--env=/path/.env``) as the session of every destination, while
keeping token refreshes in memory so the operator's file is never rewritten.

Contents
--------
* :class:`EnvFileOverlayBackend` – :class:`SessionBackend` over one file.
* :func:`session_from_env` – validates the file's variables.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from ...application.merge import apply_auth_mode
from ...domain.errors import StoreError
from ...domain.models import Session
from ...domain.namespaces import ABAP_NAMESPACE
from ...observability import log_debug, log_error
from ..codecs.env_file import EnvCodec

#: Mode assumed when a hand-written file does not set ``SAP_AUTH_TYPE``.
DEFAULT_AUTH_TYPE = "basic"


class EnvFileOverlayBackend:
    """Serve one env file read-only; writes land in a per-destination overlay.

    Why
    ----
    Operators hand the broker a file they maintain themselves. Refreshed tokens
    must be usable for the rest of the process without touching that file.
    """

    name = "env_file_overlay"

    def __init__(self, env_file_path: str | os.PathLike[str], *, codec: EnvCodec | None = None) -> None:
        self.path = Path(os.path.abspath(env_file_path))
        self._codec = codec or EnvCodec()
        self._file_session: Session | None = None
        self._file_loaded = False
        self._overlay: dict[str, Session] = {}
        self._deleted: set[str] = set()

    def read(self, destination: str) -> Session | None:
        if destination in self._overlay:
            return self._overlay[destination]
        if destination in self._deleted:
            return None
        return self.file_session()

    def write(self, destination: str, session: Session) -> None:
        self._deleted.discard(destination)
        self._overlay[destination] = session
        log_debug("session_overlay_written", store="env_file", destination=destination, path=str(self.path))

    def delete(self, destination: str) -> bool:
        existed = self.read(destination) is not None
        self._overlay.pop(destination, None)
        self._deleted.add(destination)
        return existed

    def file_session(self) -> Session | None:
        """Return the validated session stored in the file (cached after the first read).

        Missing or invalid files read as ``None`` and are reported through an
        error log, so a broken ``--env`` file degrades into "no session".
        """

        if self._file_loaded:
            return self._file_session
        session: Session | None = None
        try:
            variables = self._codec.load(self.path)
            if variables is None:
                log_error("env_file_missing", path=str(self.path))
            else:
                session = session_from_env(variables, source=str(self.path))
        except StoreError as exc:
            log_error("env_file_unreadable", path=str(self.path), error=str(exc), code=exc.code)
        self._file_session = session
        self._file_loaded = True
        return session

    def clear(self) -> None:
        """Forget overlay entries and deletions and re-read the file on next access."""

        self._overlay.clear()
        self._deleted.clear()
        self._file_session = None
        self._file_loaded = False


def session_from_env(variables: Mapping[str, str], *, source: str | None = None) -> Session | None:
    """Build the session described by a hand-written ABAP env file.

    ``SAP_URL`` is required. ``SAP_AUTH_TYPE`` defaults to ``basic``; basic
    needs ``SAP_USERNAME`` and ``SAP_PASSWORD``, jwt needs ``SAP_JWT_TOKEN``,
    saml needs ``SAP_SESSION_COOKIES_B64``. Anything else yields ``None``.

    Examples
    --------
    >>> session_from_env({'SAP_URL': 'https://a', 'SAP_USERNAME': 'u', 'SAP_PASSWORD': 'p'}).auth_type
    'basic'
    >>> session_from_env({'SAP_URL': 'https://a', 'SAP_AUTH_TYPE': 'jwt'}) is None
    True
    """

    session = ABAP_NAMESPACE.decode(variables, source=source)
    if session is None or not session.service_url:
        log_error("env_file_invalid", path=source, missing=["SAP_URL"])
        return None
    mode = session.auth_type or DEFAULT_AUTH_TYPE
    required = {
        "basic": ("username", "password"),
        "jwt": ("authorization_token",),
        "saml": ("session_cookies",),
    }[mode]
    missing = [name for name in required if not getattr(session, name)]
    if missing:
        log_error("env_file_invalid", path=source, auth_type=mode, missing=missing)
        return None
    log_debug("env_file_session_loaded", path=source, auth_type=mode)
    return apply_auth_mode(session, mode)
