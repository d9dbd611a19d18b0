"""`.env` codec for session files.

Purpose
-------
Read and write the flat ``KEY=VALUE`` files that hold session state. Parsing is
strict (a malformed line is an error, not a silently skipped line) and writing
is atomic and preserves keys the stores do not manage.

Contents
--------
* :class:`EnvCodec` – ``parse`` / ``serialize`` / ``load`` / ``save``.
* Helpers (`_decode_value`, `_strip_inline_comment`, `_encode_value`) holding
  the quoting rules.

System Role
-----------
Used by :mod:`lib_auth_stores.adapters.backends.env_file` and by
:class:`lib_auth_stores.core.EnvFileSessionStore`.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from pathlib import Path

from ...domain.errors import FileNotFound, ParseError, StorageError
from ...observability import log_debug, log_error
from .atomic import write_atomic

_INLINE_COMMENT = re.compile(r"\s#")
_NEEDS_QUOTES = frozenset("=#\"'")


class EnvCodec:
    """Parse and serialise env files.

    Quoting rules
    -------------
    * ``"…"`` and ``'…'`` values keep inner ``#``; ``\\"`` and ``\\\\`` are
      unescaped; text after the closing quote is ignored.
    * Unquoted values lose an inline comment only when ``#`` follows
      whitespace, so ``https://host/#fragment`` survives.
    * Multi-line values are not supported.
    """

    def parse(self, text: str, *, source: str | None = None) -> dict[str, str]:
        """Return the variables defined in *text*.

        Raises
        ------
        ParseError
            On a non-comment line without ``=`` or with an empty key.

        Examples
        --------
        >>> EnvCodec().parse('# session\\nSAP_URL=https://a/#x\\nSAP_CLIENT="001" # dev\\n')
        {'SAP_URL': 'https://a/#x', 'SAP_CLIENT': '001'}
        """

        origin = source or "<text>"
        result: dict[str, str] = {}
        for line_number, raw_line in enumerate(text.replace("\r\n", "\n").split("\n"), start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            key, separator, value = line.partition("=")
            key = key.strip()
            if not separator or not key:
                log_error("env_invalid_line", path=source, line=line_number)
                raise ParseError(f"Malformed line {line_number} in {origin}: expected KEY=VALUE", source)
            result[key] = _decode_value(value.strip())
        return result

    def serialize(self, variables: Mapping[str, str]) -> str:
        """Render *variables* one ``KEY=VALUE`` per line with a trailing newline.

        Raises
        ------
        StorageError
            When a value contains a line break.

        Examples
        --------
        >>> EnvCodec().serialize({'SAP_URL': 'https://a', 'SAP_PASSWORD': 'p w#"'})
        'SAP_URL=https://a\\nSAP_PASSWORD="p w#\\\\""\\n'
        """

        lines = []
        for key, value in variables.items():
            if "\n" in value or "\r" in value:
                raise StorageError("serialize", f"Value of {key} contains a line break and cannot be stored")
            lines.append(f"{key}={_encode_value(value)}")
        return "".join(f"{line}\n" for line in lines)

    def load(self, path: Path | str) -> dict[str, str] | None:
        """Return the variables stored at *path* or ``None`` when it is missing."""

        try:
            text = _read_text(Path(path))
        except FileNotFound:
            log_debug("env_file_missing", path=str(path))
            return None
        variables = self.parse(text, source=str(path))
        log_debug("env_file_loaded", path=str(path), keys=sorted(variables))
        return variables

    def save(
        self,
        path: Path | str,
        variables: Mapping[str, str],
        *,
        preserve_existing: bool = True,
        discard: Iterable[str] = (),
    ) -> None:
        """Write *variables* to *path* atomically.

        With *preserve_existing* the current file content, minus the *discard*
        keys, is kept underneath *variables* so unmanaged keys survive.
        """

        merged: dict[str, str] = {}
        if preserve_existing:
            dropped = set(discard)
            existing = self.load(path) or {}
            merged = {key: value for key, value in existing.items() if key not in dropped}
        merged.update(variables)
        write_atomic(path, self.serialize(merged))
        log_debug("env_file_written", path=str(path), keys=sorted(merged))


def _read_text(path: Path) -> str:
    """Read *path* as UTF-8, raising :class:`FileNotFound` when missing."""

    if not path.is_file():
        raise FileNotFound(str(path))
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        log_error("env_file_undecodable", path=str(path), error=str(exc))
        raise ParseError(f"File {path} is not valid UTF-8: {exc}", str(path)) from exc
    except FileNotFoundError as exc:
        raise FileNotFound(str(path)) from exc
    except OSError as exc:
        raise StorageError("read", f"Failed to read {path}: {exc}", str(path)) from exc


def _decode_value(value: str) -> str:
    """Unquote *value* or strip its inline comment.

    Examples
    --------
    >>> _decode_value('"a \\\\"b\\\\" #c" trailing')
    'a "b" #c'
    >>> _decode_value("'x#y'")
    'x#y'
    >>> _decode_value('plain # note')
    'plain'
    """

    if value[:1] in {'"', "'"}:
        quote = value[0]
        chars: list[str] = []
        index = 1
        while index < len(value):
            char = value[index]
            if char == "\\" and index + 1 < len(value) and value[index + 1] in {quote, "\\"}:
                chars.append(value[index + 1])
                index += 2
                continue
            if char == quote:
                return "".join(chars)
            chars.append(char)
            index += 1
        # Unterminated quote: keep the text as written.
    return _strip_inline_comment(value)


def _strip_inline_comment(value: str) -> str:
    if value.startswith("#"):
        return ""
    match = _INLINE_COMMENT.search(value)
    if match is None:
        return value
    return value[: match.start()].rstrip()


def _encode_value(value: str) -> str:
    """Quote *value* when a reader would otherwise misread it."""

    if not any(char.isspace() or char in _NEEDS_QUOTES or char == "\\" for char in value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
