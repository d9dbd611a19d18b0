"""Read-only access to ``{destination}.json`` service keys.

Purpose
-------
Expose the static OAuth client credentials a platform provisioned for a
destination, in the same connection/authorization views the session stores
use.

Contents
--------
* :class:`ServiceKeyStore` – ``load_service_key``, ``get_authorization_config``,
  ``get_connection_config``, ``get_service_key``, ``get_search_paths``.

System Role
-----------
Absence is a normal outcome (``None``); parse and format errors always
propagate so a broken key file is never mistaken for a missing one.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from ..domain.models import AuthorizationConfig, ConnectionConfig, ServiceKey, Session
from ..observability import log_debug, log_info, make_event
from .ports import JsonLoader, PathResolver

ServiceKeyParse = Callable[..., ServiceKey]

SERVICE_KEY_SUFFIX = ".json"


class ServiceKeyStore:
    """Resolve, parse, and project service keys.

    Parameters
    ----------
    resolver:
        Directory list to search for ``{destination}.json``.
    loader:
        JSON loader tolerant of banner text and ``credentials`` envelopes.
    parse:
        Callable turning a raw JSON object into a :class:`ServiceKey`; called as
        ``parse(raw, source=path)``. The composition root passes
        :func:`lib_auth_stores.adapters.parsers.service_key.parse_service_key`.
    """

    def __init__(
        self,
        resolver: PathResolver,
        loader: JsonLoader,
        parse: ServiceKeyParse,
    ) -> None:
        self._resolver = resolver
        self._loader = loader
        self._parse = parse

    def get_search_paths(self) -> list[Path]:
        """Return the directories searched for service keys."""

        return self._resolver.search_paths

    def load_service_key(self, destination: str) -> ServiceKey | None:
        """Return the parsed key or ``None`` when no file exists.

        Raises
        ------
        ParseError / FormatMismatch / InvalidConfig
            When the file exists but cannot be turned into a service key.
        """

        path = self._resolver.find(f"{destination}{SERVICE_KEY_SUFFIX}")
        if path is None:
            log_debug("service_key_missing", **make_event("service_key", destination))
            return None
        raw = self._loader.load(path)
        if raw is None:
            return None
        key = self._parse(raw, source=str(path))
        log_info("service_key_loaded", **make_event("service_key", destination, {"path": str(path)}))
        return key

    def get_authorization_config(self, destination: str) -> AuthorizationConfig | None:
        """Return the UAA credentials when all three fields are non-empty."""

        key = self.load_service_key(destination)
        if key is None:
            return None
        authorization = AuthorizationConfig(
            uaa_url=key.uaa.url,
            uaa_client_id=key.uaa.client_id,
            uaa_client_secret=key.uaa.client_secret,
        )
        return authorization if authorization.is_complete else None

    def get_connection_config(self, destination: str) -> ConnectionConfig | None:
        """Return the system URL, client, and language; the token is always empty.

        ``service_url`` prefers ``abap.url``, then ``sap_url``, then the root
        ``url`` unless that URL contains ``"authentication"`` (the UAA endpoint).
        """

        key = self.load_service_key(destination)
        if key is None:
            return None
        return ConnectionConfig(
            service_url=key.service_url,
            authorization_token="",
            sap_client=key.sap_client,
            language=key.language,
        )

    def get_service_key(self, destination: str) -> Session | None:
        """Return both views combined, or ``None`` when neither is available."""

        authorization = self.get_authorization_config(destination)
        connection = self.get_connection_config(destination)
        if authorization is None and connection is None:
            return None
        return Session.from_parts(connection, authorization)

