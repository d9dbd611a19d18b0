"""Generic session-store engine.

Purpose
-------
Implement the session-store operations once, parameterised by a
:class:`~lib_auth_stores.application.policy.SessionPolicy` (what the kind
allows) and a :class:`~lib_auth_stores.application.ports.SessionBackend` (where
records live). Concrete stores in :mod:`lib_auth_stores.core` only choose the
two.

Contents
--------
* :class:`SessionStore` – ``get/set_connection_config``,
  ``get/set_authorization_config``, ``load/save_session``, ``delete_session``.

System Role
-----------
Per destination the state is *absent*, *partial* or *complete*. Reads on an
absent destination return ``None`` without side effects; the first write
creates the record (resolving ``serviceUrl`` from the update or the policy
default); later writes merge via :func:`merge_session` and persist the full
record. An update left without fields after admission writes nothing.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..domain.errors import InvalidConfig
from ..domain.models import AuthorizationConfig, ConnectionConfig, Session
from ..observability import format_token, log_debug, log_info, log_warning, make_event
from .merge import merge_session, read_mode
from .policy import SessionPolicy
from .ports import SessionBackend

SessionInput = Session | Mapping[str, Any]


class SessionStore:
    """Policy-driven session store shared by every destination kind.

    Why
    ----
    File-backed and in-memory stores, ABAP and XSUAA alike, differ only in
    configuration. Keeping the state machine in one class means every variant
    merges, validates, and logs identically.

    Examples
    --------
    >>> from lib_auth_stores.adapters.backends.memory import MemorySessionBackend
    >>> from lib_auth_stores.application.policy import ABAP_POLICY
    >>> store = SessionStore(ABAP_POLICY, MemorySessionBackend())
    >>> store.set_connection_config('TRIAL', ConnectionConfig(service_url='https://a', authorization_token='t1'))
    >>> store.set_connection_config('TRIAL', ConnectionConfig(authorization_token='t2'))
    >>> view = store.get_connection_config('TRIAL')
    >>> view.service_url, view.authorization_token, view.auth_type
    ('https://a', 't2', 'jwt')
    """

    def __init__(self, policy: SessionPolicy, backend: SessionBackend) -> None:
        self._policy = policy
        self._backend = backend

    @property
    def policy(self) -> SessionPolicy:
        return self._policy

    @property
    def backend(self) -> SessionBackend:
        return self._backend

    def get_connection_config(self, destination: str) -> ConnectionConfig | None:
        """Return the connection view of *destination* or ``None``.

        ABAP views require a ``serviceUrl`` and complete credentials for the
        active mode; incomplete records yield ``None`` and a warning.
        """

        session = self._backend.read(destination)
        if session is None:
            return None
        return self._connection_view(destination, session)

    def get_authorization_config(self, destination: str) -> AuthorizationConfig | None:
        """Return the authorization view only when all three UAA fields are set."""

        session = self._backend.read(destination)
        if session is None:
            return None
        authorization = session.authorization()
        if not authorization.is_complete:
            log_debug("authorization_incomplete", **self._event(destination))
            return None
        return authorization

    def set_connection_config(self, destination: str, config: ConnectionConfig | Mapping[str, Any]) -> None:
        """Merge the connection fields of *config* into *destination*.

        Raises
        ------
        InvalidConfig
            When a new ABAP session has no resolvable ``serviceUrl`` or the
            payload belongs to another destination kind.
        """

        if isinstance(config, ConnectionConfig):
            update = Session.from_parts(connection=config)
        else:
            update = Session.from_parts(connection=self._from_mapping(config).connection())
        self._apply(destination, update, operation="set_connection_config")

    def set_authorization_config(self, destination: str, config: AuthorizationConfig | Mapping[str, Any]) -> None:
        """Merge the UAA and refresh-token fields of *config* into *destination*."""

        if isinstance(config, AuthorizationConfig):
            update = Session.from_parts(authorization=config)
        else:
            update = Session.from_parts(authorization=self._from_mapping(config).authorization())
        self._apply(destination, update, operation="set_authorization_config")

    def load_session(self, destination: str) -> Session | None:
        """Return the stored record, with ``auth_type`` resolved, or ``None``."""

        session = self._backend.read(destination)
        if session is None or not self._policy.auth_modes:
            return session
        return session.replace(auth_type=read_mode(session))

    def save_session(self, destination: str, session: SessionInput) -> None:
        """Merge both halves of *session* at once using the setter rules."""

        update = session if isinstance(session, Session) else self._from_mapping(session)
        self._apply(destination, update, operation="save_session")

    def delete_session(self, destination: str) -> None:
        """Remove *destination*; deleting an absent destination is a no-op."""

        removed = self._backend.delete(destination)
        if removed:
            log_info("session_deleted", **self._event(destination))
        else:
            log_debug("session_delete_noop", **self._event(destination))

    def _apply(self, destination: str, update: Session, *, operation: str) -> None:
        update = self._policy.admit(update, destination=destination)
        current = self._backend.read(destination)
        if current is None:
            update = update.replace(service_url=self._resolve_service_url(destination, update))
        if not update.present_fields():
            log_debug("session_update_empty", **self._event(destination, {"operation": operation}))
            return
        merged = merge_session(current, update, auth_modes=self._policy.auth_modes)
        self._backend.write(destination, merged)
        log_info(
            "session_created" if current is None else "session_updated",
            **self._event(
                destination,
                {
                    "operation": operation,
                    "fields": sorted(update.present_fields()),
                    "token": format_token(merged.authorization_token),
                },
            ),
        )

    def _resolve_service_url(self, destination: str, update: Session) -> str | None:
        # An explicit "" counts as given and does not fall back to the default.
        service_url = update.service_url if update.service_url is not None else self._policy.default_service_url
        if self._policy.require_service_url and not service_url:
            raise InvalidConfig(
                f"Cannot create {self._policy.kind} session for destination {destination!r}: "
                "serviceUrl is required (pass it in the update or configure default_service_url)",
                missing_fields=["service_url"],
            )
        return service_url

    def _from_mapping(self, payload: Mapping[str, Any]) -> Session:
        self._policy.reject_foreign_markers(payload)
        return Session.from_mapping(payload)

    def _connection_view(self, destination: str, session: Session) -> ConnectionConfig | None:
        if not self._policy.auth_modes:
            return ConnectionConfig(
                service_url=session.service_url,
                authorization_token=session.authorization_token or "",
                auth_type="jwt",
            )
        if not session.service_url:
            log_warning("session_incomplete", **self._event(destination, {"missing": ["service_url"]}))
            return None
        mode = read_mode(session)
        common = {
            "service_url": session.service_url,
            "sap_client": session.sap_client,
            "language": session.language,
            "auth_type": mode,
        }
        if mode == "basic":
            if not (session.username and session.password):
                log_warning("session_incomplete", **self._event(destination, {"mode": mode, "missing": ["username/password"]}))
                return None
            return ConnectionConfig(**common, username=session.username, password=session.password)
        if mode == "saml":
            if not session.session_cookies:
                log_warning("session_incomplete", **self._event(destination, {"mode": mode, "missing": ["session_cookies"]}))
                return None
            return ConnectionConfig(**common, authorization_token="", session_cookies=session.session_cookies)
        return ConnectionConfig(**common, authorization_token=session.authorization_token or "")

    def _event(self, destination: str, payload: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return make_event(self._policy.kind, destination, {"backend": self._backend.name, **(payload or {})})
