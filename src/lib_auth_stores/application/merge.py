"""Application-layer merge and auth-mode rules for sessions.

Purpose
-------
Combine a caller-supplied partial update with the persisted session record
while keeping the ABAP auth modes mutually exclusive. The module is free of I/O
so every backend shares identical semantics.

Contents
    - ``merge_session``: public entry point used by the session-store engine.
    - ``update_mode`` / ``read_mode``: mode selection for writes and reads.
    - ``apply_auth_mode``: strips the fields belonging to the other two modes.

System Role
-----------
Called by :class:`lib_auth_stores.application.session_store.SessionStore`
before every backend write. Backends persist the returned record as a whole.
"""

from __future__ import annotations

from ..domain.models import AuthType, Session


def merge_session(current: Session | None, update: Session, *, auth_modes: bool = True) -> Session:
    """Merge *update* onto *current* and normalise the auth mode.

    Why
    ----
    Fields present in *update* (including ``""``) overwrite, ``None`` fields
    keep the prior value. Switching modes must not leave stale credentials of
    the previous mode behind, and an update that selects no mode re-applies
    the mode pinned on *current*.

    Parameters
    ----------
    current:
        Persisted record or ``None`` for a new destination.
    update:
        Partial update supplied by the caller.
    auth_modes:
        Apply the ABAP three-mode branching. XSUAA sessions are always JWT.

    Examples
    --------
    >>> jwt = Session(service_url='https://a', authorization_token='t1')
    >>> merged = merge_session(jwt, Session(session_cookies='X'))
    >>> merged.auth_type, merged.authorization_token, merged.username
    ('saml', '', None)
    >>> merge_session(jwt, Session(authorization_token='t2')).service_url
    'https://a'
    >>> pinned = Session(service_url='https://a', auth_type='basic', username='u', password='p', authorization_token='old')
    >>> merge_session(pinned, Session(refresh_token='r')).authorization_token
    ''
    """

    merged = (current or Session()).merged_with(update)
    if not auth_modes:
        return merged
    mode = update_mode(update) or (current.auth_type if current is not None else None)
    if mode is None:
        return merged
    return apply_auth_mode(merged, mode)


def update_mode(update: Session) -> AuthType | None:
    """Return the auth mode an update selects, or ``None`` to keep the current one.

    Precedence: explicit ``auth_type`` > ``session_cookies`` > ``username`` and
    ``password`` without a token > ``authorization_token``.

    Examples
    --------
    >>> update_mode(Session(username='u', password='p'))
    'basic'
    >>> update_mode(Session(username='u', password='p', authorization_token='t'))
    'jwt'
    >>> update_mode(Session(sap_client='001')) is None
    True
    """

    if update.auth_type:
        return update.auth_type
    if update.session_cookies:
        return "saml"
    if update.username and update.password and not update.authorization_token:
        return "basic"
    if update.authorization_token:
        return "jwt"
    return None


def read_mode(session: Session) -> AuthType:
    """Return the auth mode a stored record represents.

    Precedence: explicit ``auth_type`` > ``session_cookies`` > ``username`` and
    ``password`` with no token > JWT.
    """

    if session.auth_type:
        return session.auth_type
    if session.session_cookies:
        return "saml"
    if session.username and session.password and not session.authorization_token:
        return "basic"
    return "jwt"


def apply_auth_mode(session: Session, mode: AuthType) -> Session:
    """Return *session* with *mode* active and the other modes' fields removed."""

    if mode == "saml":
        return session.replace(auth_type=mode, authorization_token="", username=None, password=None)
    if mode == "basic":
        return session.replace(auth_type=mode, authorization_token="", session_cookies=None)
    return session.replace(auth_type=mode, username=None, password=None, session_cookies=None)
