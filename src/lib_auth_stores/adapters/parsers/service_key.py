"""Service-key format detection and normalisation.

Purpose
-------
Turn the raw JSON object of a service key into a canonical
:class:`~lib_auth_stores.domain.models.ServiceKey`, whichever platform produced
it.

Contents
--------
* :class:`AbapServiceKeyParser` – ABAP environment keys (nested ``uaa`` object).
* :class:`XsuaaServiceKeyParser` – XSUAA keys (client credentials at the root).
* :data:`DEFAULT_PARSERS` – detection order used by the stores.
* :func:`parse_service_key` – tagged dispatch over the parsers.

System Role
-----------
Implements :class:`lib_auth_stores.application.ports.ServiceKeyParser`. The
first parser whose ``can_parse`` accepts the object wins; no match raises
:class:`FormatMismatch` naming every known shape.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from ...application.ports import ServiceKeyParser
from ...domain.errors import FormatMismatch, InvalidConfig
from ...domain.models import ServiceKey, UaaCredentials
from ...observability import log_debug, log_error
from ..codecs.json_file import unwrap_credentials

_UAA_FIELDS = ("url", "clientid", "clientsecret")


class AbapServiceKeyParser:
    """Parse keys shaped ``{"uaa": {...}, "abap": {...}, ...}``."""

    name = "abap"
    shape = 'ABAP ({"uaa": {"url", "clientid", "clientsecret"}, "abap": {...}})'

    def can_parse(self, raw: Any) -> bool:
        """Return ``True`` when *raw* holds a nested ``uaa`` object.

        Examples
        --------
        >>> AbapServiceKeyParser().can_parse({'uaa': {}})
        True
        >>> AbapServiceKeyParser().can_parse({'uaa': 'text'})
        False
        """

        return isinstance(raw, Mapping) and isinstance(raw.get("uaa"), Mapping)

    def parse(self, raw: Mapping[str, Any], *, source: str | None = None) -> ServiceKey:
        """Validate the ``uaa`` block and pass every other field through.

        Raises
        ------
        FormatMismatch
            When :meth:`can_parse` rejects *raw*.
        InvalidConfig
            When ``uaa.url``, ``uaa.clientid`` or ``uaa.clientsecret`` is empty;
            ``missing_fields`` names exactly the absent ones.
        """

        if not self.can_parse(raw):
            raise _not_this_shape(self.shape, source)
        uaa = raw["uaa"]
        missing = [f"uaa.{key}" for key in _UAA_FIELDS if not _is_text(uaa.get(key))]
        if missing:
            log_error("service_key_uaa_incomplete", parser=self.name, path=source, missing=missing)
            raise InvalidConfig(
                f"Service key uaa object is missing required fields: {', '.join(missing)}",
                missing_fields=missing,
            )
        fields = {key: value for key, value in raw.items() if key not in {"uaa", "abap"}}
        log_debug("service_key_parsed", parser=self.name, path=source, has_abap="abap" in raw)
        return ServiceKey(
            uaa=UaaCredentials(uaa["url"], uaa["clientid"], uaa["clientsecret"]),
            abap=raw.get("abap"),
            fields=fields,
        )


class XsuaaServiceKeyParser:
    """Parse keys shaped ``{"url", "clientid", "clientsecret", ...}`` (no ``uaa``)."""

    name = "xsuaa"
    shape = 'XSUAA ({"url", "clientid", "clientsecret"} at the root, no "uaa")'

    def can_parse(self, raw: Any) -> bool:
        """Return ``True`` for root-level client credentials without a ``uaa`` key.

        Examples
        --------
        >>> XsuaaServiceKeyParser().can_parse({'url': 'u', 'clientid': 'c', 'clientsecret': 's'})
        True
        >>> XsuaaServiceKeyParser().can_parse({'url': 'u', 'clientid': 'c', 'clientsecret': ''})
        False
        """

        if not isinstance(raw, Mapping) or "uaa" in raw:
            return False
        return all(_is_text(raw.get(key)) for key in _UAA_FIELDS)

    def parse(self, raw: Mapping[str, Any], *, source: str | None = None) -> ServiceKey:
        """Lift the root credentials into ``uaa``; keep ``url`` (not ``apiurl``) as the UAA URL."""

        if not self.can_parse(raw):
            raise _not_this_shape(self.shape, source)
        fields = {key: value for key, value in raw.items() if key not in {"clientid", "clientsecret", "abap"}}
        log_debug("service_key_parsed", parser=self.name, path=source, has_abap="abap" in raw)
        return ServiceKey(
            uaa=UaaCredentials(raw["url"], raw["clientid"], raw["clientsecret"]),
            abap=raw.get("abap"),
            fields=fields,
        )


DEFAULT_PARSERS: tuple[ServiceKeyParser, ...] = (AbapServiceKeyParser(), XsuaaServiceKeyParser())


def parse_service_key(
    raw: Any,
    *,
    parsers: Sequence[ServiceKeyParser] = DEFAULT_PARSERS,
    source: str | None = None,
) -> ServiceKey:
    """Normalise *raw* with the first parser that recognises it.

    Examples
    --------
    >>> key = parse_service_key({'credentials': {'url': 'https://t.authentication.test', 'clientid': 'c', 'clientsecret': 's'}})
    >>> key.uaa.client_id, key.service_url is None
    ('c', True)
    >>> parse_service_key({'foo': 1})
    Traceback (most recent call last):
    ...
    lib_auth_stores.domain.errors.FormatMismatch: Service key does not match any supported format; expected ABAP ({"uaa": {"url", "clientid", "clientsecret"}, "abap": {...}}) or XSUAA ({"url", "clientid", "clientsecret"} at the root, no "uaa")
    """

    if isinstance(raw, dict):
        raw = unwrap_credentials(raw)
    for parser in parsers:
        if parser.can_parse(raw):
            return parser.parse(raw, source=source)
    shapes = [parser.shape for parser in parsers]
    origin = f" {source}" if source else ""
    log_error("service_key_format_mismatch", path=source, parsers=[parser.name for parser in parsers])
    raise FormatMismatch(
        f"Service key{origin} does not match any supported format; expected {' or '.join(shapes)}",
        shapes,
    )


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def _not_this_shape(shape: str, source: str | None) -> FormatMismatch:
    origin = f" {source}" if source else ""
    return FormatMismatch(f"Service key{origin} is not in {shape} format", [shape])
