"""Per-kind session policies.

A policy is configuration, not behaviour: it tells the generic engine whether a
``serviceUrl`` is mandatory, which default applies, which env namespace the
records belong to, and which payloads belong to a different destination kind.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, Literal

from ..domain.errors import InvalidConfig
from ..domain.models import Session
from ..domain.namespaces import ABAP_NAMESPACE, XSUAA_NAMESPACE, EnvNamespace
from ..observability import log_debug

DestinationKind = Literal["abap", "xsuaa"]

_XSUAA_FOREIGN_FIELDS = ("username", "password", "session_cookies")


@dataclass(frozen=True, slots=True)
class SessionPolicy:
    """Configuration variance between destination kinds.

    Attributes
    ----------
    kind:
        ``"abap"`` or ``"xsuaa"``.
    namespace:
        Env-variable namespace of the kind's session files.
    require_service_url:
        Creating a session without a resolvable ``serviceUrl`` fails.
    auth_modes:
        Whether the ABAP basic/JWT/SAML branching applies.
    foreign_markers:
        Mapping keys that identify a payload of another destination kind.
    default_service_url:
        Fallback ``serviceUrl`` used when a new session is created.
    """

    kind: DestinationKind
    namespace: EnvNamespace
    require_service_url: bool
    auth_modes: bool
    foreign_markers: frozenset[str]
    default_service_url: str | None = None

    def with_default_service_url(self, url: str | None) -> SessionPolicy:
        """Return a copy using *url* as the default ``serviceUrl``."""

        return replace(self, default_service_url=url)

    def reject_foreign_markers(self, payload: Mapping[str, Any]) -> None:
        """Raise :class:`InvalidConfig` when *payload* carries another kind's keys.

        Examples
        --------
        >>> XSUAA_POLICY.reject_foreign_markers({'mcpUrl': 'https://mcp'})
        >>> XSUAA_POLICY.reject_foreign_markers({'sapUrl': 'https://a'})
        Traceback (most recent call last):
        ...
        lib_auth_stores.domain.errors.InvalidConfig: xsuaa session store cannot accept a payload carrying sapUrl
        """

        foreign = sorted(key for key in payload if key in self.foreign_markers and payload[key] is not None)
        if foreign:
            raise InvalidConfig(f"{self.kind} session store cannot accept a payload carrying {', '.join(foreign)}")

    def admit(self, update: Session, *, destination: str | None = None) -> Session:
        """Validate *update* for this kind and drop fields the kind cannot store."""

        if self.auth_modes:
            return update
        carried = [name for name in _XSUAA_FOREIGN_FIELDS if getattr(update, name) is not None]
        if update.auth_type not in (None, "jwt"):
            carried.append(f"auth_type={update.auth_type}")
        if carried:
            raise InvalidConfig(f"{self.kind} sessions only support JWT authentication; got {', '.join(carried)}")
        dropped = [name for name in update.present_fields() if not self.namespace.supports(name) and name != "auth_type"]
        if dropped:
            log_debug("session_fields_dropped", store=self.kind, destination=destination, fields=dropped)
            update = update.replace(**{name: None for name in dropped})
        return update.replace(auth_type=None)


ABAP_POLICY = SessionPolicy(
    kind="abap",
    namespace=ABAP_NAMESPACE,
    require_service_url=True,
    auth_modes=True,
    foreign_markers=frozenset({"mcpUrl"}),
)

XSUAA_POLICY = SessionPolicy(
    kind="xsuaa",
    namespace=XSUAA_NAMESPACE,
    require_service_url=False,
    auth_modes=False,
    foreign_markers=frozenset({"sapUrl", "abapUrl"}),
)
