"""JSON service-key file handler.

Purpose
-------
Load service keys that were pasted from the Cloud Foundry CLI or BTP cockpit.
Those files frequently carry banner text around the JSON object, or wrap the
key in a ``{"credentials": ...}`` envelope; both are tolerated here so parsers
only see the bare key object.

Contents
--------
* :class:`JsonFileHandler` – ``load`` / ``parse`` / ``save``.
* :func:`unwrap_credentials` – strips the ``credentials`` envelope.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from ...domain.errors import ParseError, StorageError
from ...observability import log_debug, log_error
from .atomic import write_atomic


class JsonFileHandler:
    """Read and write JSON objects on disk."""

    def load(self, path: Path | str) -> dict[str, Any] | None:
        """Return the JSON object stored at *path* or ``None`` when missing.

        Examples
        --------
        >>> from tempfile import TemporaryDirectory
        >>> tmp = TemporaryDirectory()
        >>> target = Path(tmp.name) / 'TRIAL.json'
        >>> _ = target.write_text('Getting key...\\nOK\\n{"url": "https://x"}\\n', encoding='utf-8')
        >>> JsonFileHandler().load(target)
        {'url': 'https://x'}
        >>> JsonFileHandler().load(Path(tmp.name) / 'missing.json') is None
        True
        >>> tmp.cleanup()
        """

        file_path = Path(path)
        if not file_path.is_file():
            log_debug("json_file_missing", path=str(file_path))
            return None
        try:
            text = file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            log_error("json_file_undecodable", path=str(file_path), error=str(exc))
            raise ParseError(f"File {file_path} is not valid UTF-8: {exc}", str(file_path)) from exc
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError("read", f"Failed to read {file_path}: {exc}", str(file_path)) from exc
        data = self.parse(text, source=str(file_path))
        log_debug("json_file_loaded", path=str(file_path), keys=sorted(data))
        return data

    def parse(self, text: str, *, source: str | None = None) -> dict[str, Any]:
        """Decode *text* into a JSON object, salvaging the outermost ``{...}``.

        Raises
        ------
        ParseError
            When neither the text nor the salvaged substring decode, or when
            the document is not a JSON object.
        """

        origin = source or "<text>"
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            data = _salvage(text, origin, source, exc)
        if not isinstance(data, dict):
            log_error("json_not_object", path=source, type=type(data).__name__)
            raise ParseError(f"File {origin} does not contain a JSON object", source)
        return unwrap_credentials(data)

    def save(self, path: Path | str, data: Mapping[str, Any]) -> None:
        """Pretty-print *data* (two-space indent, trailing newline) atomically."""

        write_atomic(path, json.dumps(dict(data), indent=2, ensure_ascii=False) + "\n")
        log_debug("json_file_written", path=str(path))


def unwrap_credentials(data: dict[str, Any]) -> dict[str, Any]:
    """Return the inner object of an exact ``{"credentials": {...}}`` envelope.

    Examples
    --------
    >>> unwrap_credentials({'credentials': {'url': 'u'}})
    {'url': 'u'}
    >>> unwrap_credentials({'credentials': {'url': 'u'}, 'name': 'n'})
    {'credentials': {'url': 'u'}, 'name': 'n'}
    """

    if set(data) == {"credentials"} and isinstance(data["credentials"], dict):
        return data["credentials"]
    return data


def _salvage(text: str, origin: str, source: str | None, error: json.JSONDecodeError) -> Any:
    """Decode the substring between the first ``{`` and the last ``}``."""

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        log_error("json_invalid", path=source, error=str(error))
        raise ParseError(f"Invalid JSON in {origin}: {error}", source) from error
    try:
        data = json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        log_error("json_invalid", path=source, error=str(exc))
        raise ParseError(f"Invalid JSON in {origin}: {exc}", source) from exc
    log_debug("json_salvaged", path=source, offset=start)
    return data
