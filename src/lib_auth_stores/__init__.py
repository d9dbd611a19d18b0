"""Credential stores for an SAP authentication broker.

The package persists and resolves two artifacts per destination: the static
service key (``{destination}.json``) and the dynamic session
(``{destination}.env`` or an in-memory map). Import the concrete stores from
here; the domain, application, and adapter modules underneath are implementation
detail.
"""

from __future__ import annotations

from .adapters.backends.memory import MemorySessionBackend
from .adapters.codecs.env_file import EnvCodec
from .adapters.codecs.json_file import JsonFileHandler
from .adapters.parsers.service_key import (
    DEFAULT_PARSERS,
    AbapServiceKeyParser,
    XsuaaServiceKeyParser,
    parse_service_key,
)
from .adapters.path_resolvers.default import (
    AUTH_BROKER_PATH_VAR,
    SearchPathResolver,
    find_file_in_paths,
    resolve_search_paths,
)
from .application.policy import ABAP_POLICY, XSUAA_POLICY, SessionPolicy
from .application.service_key_store import ServiceKeyStore
from .application.session_store import SessionStore
from .core import (
    AbapServiceKeyStore,
    AbapSessionStore,
    BtpServiceKeyStore,
    BtpSessionStore,
    EnvFileSessionStore,
    FileServiceKeyStore,
    SafeAbapSessionStore,
    SafeBtpSessionStore,
    SafeSamlSessionStore,
    SafeXsuaaSessionStore,
    SamlSessionStore,
    XsuaaServiceKeyStore,
    XsuaaSessionStore,
)
from .domain.errors import FileNotFound, FormatMismatch, InvalidConfig, ParseError, StorageError, StoreError
from .domain.models import AuthorizationConfig, ConnectionConfig, ServiceKey, Session, UaaCredentials
from .domain.namespaces import (
    ABAP_AUTHORIZATION_VARS,
    ABAP_CONNECTION_VARS,
    XSUAA_AUTHORIZATION_VARS,
    XSUAA_CONNECTION_VARS,
)
from .observability import bind_trace_id, format_token, get_logger

__all__ = [
    "ABAP_AUTHORIZATION_VARS",
    "ABAP_CONNECTION_VARS",
    "ABAP_POLICY",
    "AUTH_BROKER_PATH_VAR",
    "AbapServiceKeyParser",
    "AbapServiceKeyStore",
    "AbapSessionStore",
    "AuthorizationConfig",
    "BtpServiceKeyStore",
    "BtpSessionStore",
    "ConnectionConfig",
    "DEFAULT_PARSERS",
    "EnvCodec",
    "EnvFileSessionStore",
    "FileNotFound",
    "FileServiceKeyStore",
    "FormatMismatch",
    "InvalidConfig",
    "JsonFileHandler",
    "MemorySessionBackend",
    "ParseError",
    "SafeAbapSessionStore",
    "SafeBtpSessionStore",
    "SafeSamlSessionStore",
    "SafeXsuaaSessionStore",
    "SamlSessionStore",
    "SearchPathResolver",
    "ServiceKey",
    "ServiceKeyStore",
    "Session",
    "SessionPolicy",
    "SessionStore",
    "StorageError",
    "StoreError",
    "UaaCredentials",
    "XSUAA_AUTHORIZATION_VARS",
    "XSUAA_CONNECTION_VARS",
    "XSUAA_POLICY",
    "XsuaaServiceKeyParser",
    "XsuaaServiceKeyStore",
    "XsuaaSessionStore",
    "bind_trace_id",
    "find_file_in_paths",
    "format_token",
    "get_logger",
    "parse_service_key",
    "resolve_search_paths",
]
