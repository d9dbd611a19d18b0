"""Domain value objects for service keys and sessions.

Purpose
-------
Anchor the immutable records that travel between parsers, stores, and the
auth broker. The module contains no I/O.

Contents
--------
* :data:`AUTH_TYPES` – the three mutually exclusive ABAP authentication modes.
* :class:`UaaCredentials` / :class:`ServiceKey` – canonical parsed service key.
* :class:`ConnectionConfig` – runtime connection parameters for a destination.
* :class:`AuthorizationConfig` – fields needed to mint or refresh a token.
* :class:`Session` – union of connection and authorization state.

Conventions
-----------
``None`` means *absent*. An empty string is a present, explicitly empty value;
merge rules rely on that distinction (see
:mod:`lib_auth_stores.application.merge`).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Any, Final, Literal

from .errors import InvalidConfig

AuthType = Literal["basic", "jwt", "saml"]

AUTH_TYPES: Final[tuple[str, ...]] = ("basic", "jwt", "saml")


@dataclass(frozen=True, slots=True)
class UaaCredentials:
    """OAuth client credentials of the UAA that issues tokens for a destination."""

    url: str
    client_id: str
    client_secret: str


@dataclass(frozen=True, slots=True)
class ServiceKey:
    """Canonical shape every service-key variant is normalised into.

    Why
    ----
    ABAP keys nest the UAA credentials while XSUAA keys keep them at the root.
    Stores only ever see this one shape.

    What
    ----
    ``uaa`` carries the client credentials, ``abap`` the optional ABAP system
    block, ``fields`` every other root field passed through verbatim. Both
    mappings are wrapped in ``MappingProxyType`` so a parsed key cannot be
    mutated.

    Examples
    --------
    >>> key = ServiceKey(
    ...     UaaCredentials("https://x.authentication.test", "c", "s"),
    ...     {"url": "https://x.abap.test", "client": "001"},
    ...     {"url": "https://x.authentication.test"},
    ... )
    >>> key.service_url, key.sap_client
    ('https://x.abap.test', '001')
    """

    uaa: UaaCredentials
    abap: Mapping[str, Any] | None = None
    fields: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        abap = self.abap if isinstance(self.abap, Mapping) else None
        object.__setattr__(self, "abap", MappingProxyType(dict(abap)) if abap is not None else None)
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @property
    def service_url(self) -> str | None:
        """Return the ABAP system URL: ``abap.url`` > ``sap_url`` > root ``url``.

        The root ``url`` only counts when it does not look like the UAA
        endpoint (contains ``"authentication"``); XSUAA keys reuse that field for
        the authorization server.
        """

        root_url = _text(self.fields.get("url"))
        if root_url is not None and "authentication" in root_url:
            root_url = None
        return _text(self._abap_value("url")) or _text(self.fields.get("sap_url")) or root_url

    @property
    def sap_client(self) -> str | None:
        """Return the SAP client: ``abap.client`` > ``sap_client`` > ``client``."""

        return (
            _text(self._abap_value("client"))
            or _text(self.fields.get("sap_client"))
            or _text(self.fields.get("client"))
        )

    @property
    def language(self) -> str | None:
        """Return the logon language: ``abap.language`` > ``language``."""

        return _text(self._abap_value("language")) or _text(self.fields.get("language"))

    def as_dict(self) -> dict[str, Any]:
        """Return the canonical JSON-compatible representation."""

        payload: dict[str, Any] = dict(self.fields)
        payload["uaa"] = {
            "url": self.uaa.url,
            "clientid": self.uaa.client_id,
            "clientsecret": self.uaa.client_secret,
        }
        if self.abap is not None:
            payload["abap"] = dict(self.abap)
        return payload

    def _abap_value(self, key: str) -> Any:
        if self.abap is None:
            return None
        return self.abap.get(key)


@dataclass(frozen=True, slots=True)
class ConnectionConfig:
    """Runtime connection parameters for one destination.

    Exactly one of the auth modes (``basic``, ``jwt``, ``saml``) is active in
    views returned by stores. As setter input every field is optional and
    ``None`` fields leave the stored value untouched.
    """

    service_url: str | None = None
    authorization_token: str | None = None
    sap_client: str | None = None
    language: str | None = None
    auth_type: AuthType | None = None
    username: str | None = None
    password: str | None = None
    session_cookies: str | None = None

    def __post_init__(self) -> None:
        _check_auth_type(self.auth_type)


@dataclass(frozen=True, slots=True)
class AuthorizationConfig:
    """Fields needed to mint or refresh a token.

    Stores only hand out complete views (see :attr:`is_complete`); setter
    input may be partial.
    """

    uaa_url: str | None = None
    uaa_client_id: str | None = None
    uaa_client_secret: str | None = None
    refresh_token: str | None = None

    @property
    def is_complete(self) -> bool:
        """Return ``True`` when all three UAA fields are non-empty.

        Examples
        --------
        >>> AuthorizationConfig("https://uaa", "id", "secret").is_complete
        True
        >>> AuthorizationConfig("https://uaa", "id", "").is_complete
        False
        """

        return bool(self.uaa_url and self.uaa_client_id and self.uaa_client_secret)


CONNECTION_FIELDS: Final[tuple[str, ...]] = tuple(item.name for item in fields(ConnectionConfig))
AUTHORIZATION_FIELDS: Final[tuple[str, ...]] = tuple(item.name for item in fields(AuthorizationConfig))

#: camelCase keys used by the broker's ``IConfig`` payloads.
CAMEL_KEYS: Final[Mapping[str, str]] = MappingProxyType(
    {
        "service_url": "serviceUrl",
        "authorization_token": "authorizationToken",
        "sap_client": "sapClient",
        "language": "language",
        "auth_type": "authType",
        "username": "username",
        "password": "password",
        "session_cookies": "sessionCookies",
        "uaa_url": "uaaUrl",
        "uaa_client_id": "uaaClientId",
        "uaa_client_secret": "uaaClientSecret",
        "refresh_token": "refreshToken",
    }
)

#: Internal aliases written by older broker versions.
_ALIASES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "sapUrl": "service_url",
        "abapUrl": "service_url",
        "mcpUrl": "service_url",
        "jwtToken": "authorization_token",
    }
)


@dataclass(frozen=True, slots=True)
class Session:
    """Per-destination union of connection and authorization state.

    Examples
    --------
    >>> session = Session.from_mapping({"serviceUrl": "https://a", "uaaUrl": "https://uaa"})
    >>> session.service_url, session.uaa_url
    ('https://a', 'https://uaa')
    >>> session.to_dict()
    {'serviceUrl': 'https://a', 'uaaUrl': 'https://uaa'}
    """

    service_url: str | None = None
    authorization_token: str | None = None
    sap_client: str | None = None
    language: str | None = None
    auth_type: AuthType | None = None
    username: str | None = None
    password: str | None = None
    session_cookies: str | None = None
    uaa_url: str | None = None
    uaa_client_id: str | None = None
    uaa_client_secret: str | None = None
    refresh_token: str | None = None

    def __post_init__(self) -> None:
        _check_auth_type(self.auth_type)

    @classmethod
    def from_parts(
        cls,
        connection: ConnectionConfig | None = None,
        authorization: AuthorizationConfig | None = None,
    ) -> Session:
        """Build a session from optional connection and authorization halves."""

        values: dict[str, Any] = {}
        if connection is not None:
            values.update({name: getattr(connection, name) for name in CONNECTION_FIELDS})
        if authorization is not None:
            values.update({name: getattr(authorization, name) for name in AUTHORIZATION_FIELDS})
        return cls(**values)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Session:
        """Convert a snake_case, camelCase, or legacy-alias mapping into a session.

        Unknown keys are ignored. Non-string values raise :class:`InvalidConfig`.
        """

        values: dict[str, Any] = {}
        camel_to_field = {camel: name for name, camel in CAMEL_KEYS.items()}
        for key, value in data.items():
            name = key if key in CAMEL_KEYS else camel_to_field.get(key) or _ALIASES.get(key)
            if name is None or value is None:
                continue
            if not isinstance(value, str):
                raise InvalidConfig(f"Session field {key!r} must be a string, got {type(value).__name__}")
            values.setdefault(name, value)
        return cls(**values)

    def connection(self) -> ConnectionConfig:
        """Project the connection half of the session."""

        return ConnectionConfig(**{name: getattr(self, name) for name in CONNECTION_FIELDS})

    def authorization(self) -> AuthorizationConfig:
        """Project the authorization half of the session."""

        return AuthorizationConfig(**{name: getattr(self, name) for name in AUTHORIZATION_FIELDS})

    def merged_with(self, update: Session) -> Session:
        """Return a copy where every present field of *update* wins.

        Examples
        --------
        >>> base = Session(service_url="https://a", sap_client="001")
        >>> base.merged_with(Session(sap_client="")).sap_client
        ''
        >>> base.merged_with(Session(language="EN")).sap_client
        '001'
        """

        changes = {name: getattr(update, name) for name in update.present_fields()}
        return replace(self, **changes) if changes else self

    def present_fields(self) -> tuple[str, ...]:
        """Return the names of fields holding a value (empty strings included)."""

        return tuple(name for name in CAMEL_KEYS if getattr(self, name) is not None)

    def replace(self, **changes: Any) -> Session:
        """Return a copy with *changes* applied."""

        return replace(self, **changes)

    def to_dict(self, *, camel: bool = True) -> dict[str, str]:
        """Return present fields as a plain dictionary (camelCase by default)."""

        return {CAMEL_KEYS[name] if camel else name: getattr(self, name) for name in self.present_fields()}


def _check_auth_type(value: str | None) -> None:
    if value is not None and value not in AUTH_TYPES:
        raise InvalidConfig(f"Unsupported authType {value!r}; expected one of {', '.join(AUTH_TYPES)}")


def _text(value: Any) -> str | None:
    """Return *value* when it is a non-empty string, otherwise ``None``."""

    if isinstance(value, str) and value:
        return value
    return None
