"""Env-variable namespaces used by session files.

Purpose
-------
Describe how :class:`~lib_auth_stores.domain.models.Session` fields map onto the
variables of a ``{destination}.env`` file, per destination kind. Translation
is pure; reading and writing the file belongs to the adapters.

Contents
--------
* ``ABAP_CONNECTION_VARS`` / ``ABAP_AUTHORIZATION_VARS`` – ``SAP_*`` keys.
* ``XSUAA_CONNECTION_VARS`` / ``XSUAA_AUTHORIZATION_VARS`` – ``XSUAA_*`` keys.
* :class:`EnvNamespace` – encode/decode between sessions and variables.
* :data:`ABAP_NAMESPACE` / :data:`XSUAA_NAMESPACE` – the two namespaces.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final

from .errors import ParseError
from .models import AUTH_TYPES, Session

ABAP_CONNECTION_VARS: Final[Mapping[str, str]] = MappingProxyType(
    {
        "service_url": "SAP_URL",
        "authorization_token": "SAP_JWT_TOKEN",
        "session_cookies": "SAP_SESSION_COOKIES_B64",
        "username": "SAP_USERNAME",
        "password": "SAP_PASSWORD",
        "sap_client": "SAP_CLIENT",
        "language": "SAP_LANGUAGE",
    }
)

ABAP_AUTHORIZATION_VARS: Final[Mapping[str, str]] = MappingProxyType(
    {
        "uaa_url": "SAP_UAA_URL",
        "uaa_client_id": "SAP_UAA_CLIENT_ID",
        "uaa_client_secret": "SAP_UAA_CLIENT_SECRET",
        "refresh_token": "SAP_REFRESH_TOKEN",
    }
)

#: Hand-written ABAP files may pin the auth mode; writes keep an existing pin in step.
ABAP_AUTH_TYPE_VAR: Final[str] = "SAP_AUTH_TYPE"

XSUAA_CONNECTION_VARS: Final[Mapping[str, str]] = MappingProxyType(
    {
        "authorization_token": "XSUAA_JWT_TOKEN",
        "service_url": "XSUAA_MCP_URL",
    }
)

XSUAA_AUTHORIZATION_VARS: Final[Mapping[str, str]] = MappingProxyType(
    {
        "uaa_url": "XSUAA_UAA_URL",
        "uaa_client_id": "XSUAA_UAA_CLIENT_ID",
        "uaa_client_secret": "XSUAA_UAA_CLIENT_SECRET",
        "refresh_token": "XSUAA_REFRESH_TOKEN",
    }
)


@dataclass(frozen=True, slots=True)
class EnvNamespace:
    """Bidirectional mapping between session fields and env variables.

    Why
    ----
    ABAP and XSUAA sessions may share a directory, so each kind writes its own
    prefix and must know which keys it owns.

    Examples
    --------
    >>> ABAP_NAMESPACE.encode(Session(service_url='https://a', session_cookies='c=1'))
    {'SAP_URL': 'https://a', 'SAP_SESSION_COOKIES_B64': 'Yz0x'}
    >>> ABAP_NAMESPACE.decode({'SAP_URL': 'https://a', 'OTHER': 'x'})
    Session(service_url='https://a', authorization_token=None, sap_client=None, language=None, auth_type=None, username=None, password=None, session_cookies=None, uaa_url=None, uaa_client_id=None, uaa_client_secret=None, refresh_token=None)
    >>> ABAP_NAMESPACE.decode({'OTHER': 'x'}) is None
    True
    """

    name: str
    connection_vars: Mapping[str, str]
    authorization_vars: Mapping[str, str]
    base64_fields: frozenset[str] = frozenset()
    auth_type_var: str | None = None

    @property
    def variables(self) -> dict[str, str]:
        """Return the field-to-variable map for both halves."""

        return {**self.connection_vars, **self.authorization_vars}

    @property
    def managed_keys(self) -> frozenset[str]:
        """Return every variable this namespace reads or owns."""

        keys = set(self.variables.values())
        if self.auth_type_var is not None:
            keys.add(self.auth_type_var)
        return frozenset(keys)

    def supports(self, field_name: str) -> bool:
        """Return ``True`` when *field_name* can be persisted in this namespace."""

        return field_name in self.variables or (field_name == "auth_type" and self.auth_type_var is not None)

    def encode(self, session: Session) -> dict[str, str]:
        """Return the variables representing *session*; absent fields are omitted."""

        encoded: dict[str, str] = {}
        for field_name, key in self.variables.items():
            value = getattr(session, field_name)
            if value is None:
                continue
            if field_name in self.base64_fields:
                value = base64.b64encode(value.encode("utf-8")).decode("ascii")
            encoded[key] = value
        return encoded

    def decode(self, variables: Mapping[str, str], *, source: str | None = None) -> Session | None:
        """Return the session stored in *variables* or ``None`` when none of our keys are set.

        Raises
        ------
        ParseError
            When a base64 field does not decode or the auth-type pin is unknown.
        """

        if not any(key in variables for key in self.managed_keys):
            return None
        values: dict[str, str] = {}
        for field_name, key in self.variables.items():
            if key not in variables:
                continue
            value = variables[key]
            if field_name in self.base64_fields:
                value = _decode_base64(value, key, source)
            values[field_name] = value
        if self.auth_type_var is not None and variables.get(self.auth_type_var, "").strip():
            auth_type = variables[self.auth_type_var].strip().lower()
            if auth_type not in AUTH_TYPES:
                raise ParseError(
                    f"{self.auth_type_var}={variables[self.auth_type_var]!r} in {source or '<env>'} "
                    f"is not one of {', '.join(AUTH_TYPES)}",
                    source,
                )
            values["auth_type"] = auth_type
        return Session(**values)


def _decode_base64(value: str, key: str, source: str | None) -> str:
    try:
        return base64.b64decode(value.encode("ascii"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError) as exc:
        raise ParseError(f"{key} in {source or '<env>'} is not valid base64: {exc}", source) from exc


ABAP_NAMESPACE: Final[EnvNamespace] = EnvNamespace(
    name="abap",
    connection_vars=ABAP_CONNECTION_VARS,
    authorization_vars=ABAP_AUTHORIZATION_VARS,
    base64_fields=frozenset({"session_cookies"}),
    auth_type_var=ABAP_AUTH_TYPE_VAR,
)

XSUAA_NAMESPACE: Final[EnvNamespace] = EnvNamespace(
    name="xsuaa",
    connection_vars=XSUAA_CONNECTION_VARS,
    authorization_vars=XSUAA_AUTHORIZATION_VARS,
)
