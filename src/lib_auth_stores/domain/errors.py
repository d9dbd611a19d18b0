"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by codecs, parsers, stores, and
consuming applications (the auth broker). The hierarchy lives in the domain
layer so adapters may depend on it without creating cycles.

Contents
--------
* :class:`StoreError` – umbrella base class carrying a stable ``code``.
* :class:`FileNotFound` – a backing file is absent. Stores translate it into a
  ``None`` result; it never escapes a ``get_*`` accessor.
* :class:`ParseError` – malformed JSON or env text that could not be salvaged.
* :class:`FormatMismatch` – a service key matches none of the known shapes.
* :class:`InvalidConfig` – a payload cannot be stored or parsed as requested
  (missing ``serviceUrl``, missing UAA fields, kind mismatch).
* :class:`StorageError` – filesystem write/rename/mkdir/unlink failures.

System Role
-----------
Callers catch :class:`StoreError` to handle every library failure uniformly or
branch on :attr:`StoreError.code` when talking to non-Python peers.
"""

from __future__ import annotations

from typing import Iterable


class StoreError(Exception):
    """Base type for all exceptions emitted by ``lib_auth_stores``.

    Why
    ----
    Provide a single catch-all type plus a machine-readable ``code`` for
    callers that forward errors across process boundaries.
    """

    code: str = "STORE_ERROR"


class FileNotFound(StoreError):
    """Raised when a backing file is missing.

    Why
    ----
    Absence is a normal outcome for credential files. Codecs raise this
    internally and translate it into ``None`` at their public boundary, mirroring
    how the composition root treats missing layers as non-fatal.
    """

    code = "FILE_NOT_FOUND"

    def __init__(self, file_path: str, message: str | None = None) -> None:
        super().__init__(message or f"File not found: {file_path}")
        self.file_path = file_path


class ParseError(StoreError):
    """Raised when a file or payload cannot be parsed into structured data."""

    code = "PARSE_ERROR"

    def __init__(self, message: str, file_path: str | None = None) -> None:
        super().__init__(message)
        self.file_path = file_path


class FormatMismatch(StoreError):
    """Raised when a service key matches none of the supported shapes.

    The message always names every expected shape so operators can tell which
    layout they should have provisioned.
    """

    code = "FORMAT_MISMATCH"

    def __init__(self, message: str, expected_shapes: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.expected_shapes = tuple(expected_shapes)


class InvalidConfig(StoreError):
    """Signifies that a syntactically valid payload failed semantic checks.

    Typical Sources
    ---------------
    Session creation without a resolvable ``serviceUrl``, a service key whose
    ``uaa`` object lacks required fields, or a payload of one destination kind
    handed to a store configured for another.
    """

    code = "INVALID_CONFIG"

    def __init__(self, message: str, missing_fields: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.missing_fields = list(missing_fields)


class StorageError(StoreError):
    """Raised when persisting or removing a file fails.

    Never retried internally; retry policy belongs to the caller.
    """

    code = "STORAGE_ERROR"

    def __init__(self, operation: str, message: str, file_path: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.file_path = file_path
