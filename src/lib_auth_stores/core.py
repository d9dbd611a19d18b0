"""Composition root for ``lib_auth_stores``.

Purpose
-------
Wire policies, backends, codecs, parsers, and the path resolver into the
concrete store classes the auth broker instantiates. Every class here is pure
configuration over :class:`~lib_auth_stores.application.session_store.SessionStore`
or :class:`~lib_auth_stores.application.service_key_store.ServiceKeyStore`.

Contents
--------
* :class:`FileServiceKeyStore` – ``{destination}.json`` service keys (aliases
  ``AbapServiceKeyStore``, ``XsuaaServiceKeyStore``, ``BtpServiceKeyStore``).
* :class:`AbapSessionStore` / :class:`XsuaaSessionStore` – ``{destination}.env``
  session files in the ``SAP_*`` / ``XSUAA_*`` namespaces.
* :class:`SafeAbapSessionStore` / :class:`SafeXsuaaSessionStore` – in-memory
  variants that never touch disk.
* :class:`EnvFileSessionStore` – one explicit, read-only ``.env`` file.
* Compatibility aliases ``BtpSessionStore``, ``SafeBtpSessionStore``,
  ``SamlSessionStore``, ``SafeSamlSessionStore``.

System Role
-----------
The only module that knows which adapter backs which store. Adjust wiring
here, never inside the engine.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from .adapters.backends.env_file import EnvFileSessionBackend
from .adapters.backends.env_overlay import EnvFileOverlayBackend
from .adapters.backends.memory import MemorySessionBackend
from .adapters.codecs.env_file import EnvCodec
from .adapters.codecs.json_file import JsonFileHandler
from .adapters.parsers.service_key import parse_service_key
from .adapters.path_resolvers.default import PathInput, SearchPathResolver
from .application.policy import ABAP_POLICY, XSUAA_POLICY, SessionPolicy
from .application.service_key_store import ServiceKeyStore
from .application.session_store import SessionStore
from .domain.models import AuthType, Session
from .domain.namespaces import ABAP_NAMESPACE, XSUAA_NAMESPACE, EnvNamespace


class FileServiceKeyStore(ServiceKeyStore):
    """Service keys stored as ``{destination}.json`` in the search directories.

    Examples
    --------
    >>> import json
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> key = {"url": "https://x.authentication.test", "clientid": "c", "clientsecret": "s",
    ...        "abap": {"url": "https://x.abap.test", "client": "001"}}
    >>> _ = (Path(tmp.name) / 'TRIAL.json').write_text(json.dumps(key), encoding='utf-8')
    >>> store = FileServiceKeyStore(tmp.name)
    >>> store.get_connection_config('TRIAL').service_url
    'https://x.abap.test'
    >>> store.get_authorization_config('TRIAL').uaa_url
    'https://x.authentication.test'
    >>> tmp.cleanup()
    """

    def __init__(
        self,
        search_paths: PathInput = None,
        *,
        env: Mapping[str, str] | None = None,
        cwd: Path | str | None = None,
        platform: str | None = None,
    ) -> None:
        resolver = SearchPathResolver(search_paths, env=env, cwd=cwd, platform=platform)
        super().__init__(resolver, JsonFileHandler(), parse_service_key)


class _FileSessionStore(SessionStore):
    """Env-file session store over the resolved search directories."""

    _base_policy: SessionPolicy
    _foreign: tuple[EnvNamespace, ...]

    def __init__(
        self,
        search_paths: PathInput = None,
        *,
        default_service_url: str | None = None,
        env: Mapping[str, str] | None = None,
        cwd: Path | str | None = None,
        platform: str | None = None,
    ) -> None:
        """Resolve directories once and bind the env-file backend.

        Parameters
        ----------
        search_paths:
            Directory or directories searched before ``AUTH_BROKER_PATH`` and
            the working directory.
        default_service_url:
            ``serviceUrl`` used when a new session is created without one.
        env / cwd / platform:
            Overrides for deterministic path resolution in tests.
        """

        resolver = SearchPathResolver(search_paths, env=env, cwd=cwd, platform=platform)
        policy = self._base_policy.with_default_service_url(default_service_url)
        backend = EnvFileSessionBackend(
            policy.namespace,
            resolver,
            codec=EnvCodec(),
            foreign_namespaces=self._foreign,
        )
        super().__init__(policy, backend)
        self._resolver = resolver

    def get_search_paths(self) -> list[Path]:
        """Return the directories searched for session files, highest priority first."""

        return self._resolver.search_paths


class AbapSessionStore(_FileSessionStore):
    """ABAP sessions in ``{destination}.env`` files (``SAP_*`` variables).

    A ``serviceUrl`` is mandatory when a session is created; the record holds
    exactly one of the basic, JWT, or SAML auth modes.
    """

    _base_policy = ABAP_POLICY
    _foreign = (XSUAA_NAMESPACE,)


class XsuaaSessionStore(_FileSessionStore):
    """XSUAA sessions in ``{destination}.env`` files (``XSUAA_*`` variables).

    Always JWT; ``serviceUrl`` is optional and stored as ``XSUAA_MCP_URL``.
    """

    _base_policy = XSUAA_POLICY
    _foreign = (ABAP_NAMESPACE,)


class _MemorySessionStore(SessionStore):
    _base_policy: SessionPolicy

    def __init__(self, *, default_service_url: str | None = None) -> None:
        self._memory = MemorySessionBackend()
        super().__init__(self._base_policy.with_default_service_url(default_service_url), self._memory)

    def clear_all(self) -> None:
        """Drop every stored session."""

        self._memory.clear()


class SafeAbapSessionStore(_MemorySessionStore):
    """In-memory ABAP session store; secrets never reach the filesystem."""

    _base_policy = ABAP_POLICY


class SafeXsuaaSessionStore(_MemorySessionStore):
    """In-memory XSUAA session store."""

    _base_policy = XSUAA_POLICY


class EnvFileSessionStore(SessionStore):
    """Sessions served from one explicit ``.env`` file.

    Why
    ----
    Operators may start the broker with ``--env=/path/.env``. The file is read
    once and never written: updates (token refreshes in particular) merge into
    an in-memory overlay per destination.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> env_file = Path(tmp.name) / '.env'
    >>> _ = env_file.write_text('SAP_URL=https://a\\nSAP_AUTH_TYPE=jwt\\nSAP_JWT_TOKEN=t1\\n', encoding='utf-8')
    >>> store = EnvFileSessionStore(env_file)
    >>> store.get_token('ANY')
    't1'
    >>> store.set_token('ANY', 't2')
    >>> store.get_token('ANY'), env_file.read_text(encoding='utf-8').count('t2')
    ('t2', 0)
    >>> tmp.cleanup()
    """

    def __init__(self, env_file_path: str | os.PathLike[str]) -> None:
        self._overlay = EnvFileOverlayBackend(env_file_path)
        super().__init__(ABAP_POLICY, self._overlay)

    @property
    def env_file_path(self) -> Path:
        return self._overlay.path

    def get_auth_type(self) -> AuthType | None:
        """Return the auth mode declared by the file, or ``None`` when it is unusable."""

        session = self._overlay.file_session()
        return None if session is None else session.auth_type

    def get_token(self, destination: str) -> str | None:
        session = self._overlay.read(destination)
        if session is None:
            return None
        return session.authorization_token or None

    def set_token(self, destination: str, token: str) -> None:
        """Store a refreshed bearer token in memory and switch the destination to JWT."""

        self.save_session(destination, Session(authorization_token=token, auth_type="jwt"))

    def get_refresh_token(self, destination: str) -> str | None:
        session = self._overlay.read(destination)
        if session is None:
            return None
        return session.refresh_token or None

    def set_refresh_token(self, destination: str, refresh_token: str) -> None:
        self.save_session(destination, Session(refresh_token=refresh_token))

    def clear(self) -> None:
        """Forget in-memory updates and re-read the file on next access."""

        self._overlay.clear()


BtpSessionStore = XsuaaSessionStore
SafeBtpSessionStore = SafeXsuaaSessionStore
SamlSessionStore = AbapSessionStore
SafeSamlSessionStore = SafeAbapSessionStore

AbapServiceKeyStore = FileServiceKeyStore
XsuaaServiceKeyStore = FileServiceKeyStore
BtpServiceKeyStore = FileServiceKeyStore
