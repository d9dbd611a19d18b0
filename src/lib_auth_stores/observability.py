"""Structured logging helpers shared by codecs, parsers, and stores.

Purpose
    Give codecs, parsers, and stores one way to report what they did to a
    destination, so the auth broker can route records through whatever handlers
    it installs. The package itself only emits.

Contents
    - ``TRACE_ID``: request correlation id read by every emitter.
    - ``get_logger``: the ``lib_auth_stores`` logger, silent until a host adds handlers.
    - ``bind_trace_id``: sets or resets ``TRACE_ID``.
    - ``log_debug`` / ``log_info`` / ``log_warning`` / ``log_error``: emit
      structured entries via a single private emitter.
    - ``make_event``: builds the ``store``/``destination`` payload of store events.
    - ``format_token``: shortens bearer tokens before they reach a log record.

System Integration
    Stores never log secrets whole. Tokens pass through :func:`format_token`;
    passwords, client secrets, and cookies are reported as presence flags only.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_auth_stores_trace_id", default=None)
"""Correlation id copied into the context of every record."""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_auth_stores")
_LOGGER.addHandler(logging.NullHandler())

#: Characters kept at each end of a shortened token.
_TOKEN_EDGE: Final[int] = 25


def get_logger() -> logging.Logger:
    """Return the ``lib_auth_stores`` logger for hosts that want to attach handlers."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Set the correlation id attached to subsequent records; ``None`` resets it.

    Why
        Lets a host tie session writes back to the broker request that caused them.

    Examples
    --------
    >>> bind_trace_id('req-1')
    >>> TRACE_ID.get()
    'req-1'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def log_debug(message: str, **fields: Any) -> None:
    """Record a debug event with *fields* as its context."""

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """Record an info event (session created, updated, deleted)."""

    _emit(logging.INFO, message, fields)


def log_warning(message: str, **fields: Any) -> None:
    """Record a warning, e.g. a stored session too incomplete to serve."""

    _emit(logging.WARNING, message, fields)


def log_error(message: str, **fields: Any) -> None:
    """Record an error event; the exception itself is still raised by the caller."""

    _emit(logging.ERROR, message, fields)


def make_event(
    store: str,
    destination: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Return ``{"store", "destination", **payload}`` for a store event.

    Parameters
        store: Kind of store or component (``"abap"``, ``"xsuaa"``, ``"service_key"``).
        destination: Destination name, ``None`` for store-wide events.
        payload: Extra fields appended after the two fixed keys.

    Examples
    --------
    >>> make_event('abap', 'TRIAL', {'fields': 2})
    {'store': 'abap', 'destination': 'TRIAL', 'fields': 2}
    """

    return {"store": store, "destination": destination, **(payload or {})}


def format_token(token: str | None) -> str | None:
    """Return a log-safe rendering of *token*.

    Tokens of fifty characters or fewer are returned unchanged; longer tokens
    keep their first and last twenty-five characters.

    Examples
    --------
    >>> format_token('short')
    'short'
    >>> format_token('a' * 30 + 'b' * 30)
    'aaaaaaaaaaaaaaaaaaaaaaaaa...bbbbbbbbbbbbbbbbbbbbbbbbb'
    >>> format_token(None) is None
    True
    """

    if token is None or len(token) <= 2 * _TOKEN_EDGE:
        return token
    return f"{token[:_TOKEN_EDGE]}...{token[-_TOKEN_EDGE:]}"


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    """Log *message* at *level* with the trace-aware context attached as ``record.context``."""

    _LOGGER.log(level, message, extra={"context": _with_trace(fields)})


def _with_trace(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Prefix *fields* with the bound ``trace_id``."""

    return {"trace_id": TRACE_ID.get(), **fields}
