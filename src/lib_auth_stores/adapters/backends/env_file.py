"""`{destination}.env` session backend.

Purpose
-------
Persist session records as env files inside the search directories resolved by
:class:`~lib_auth_stores.adapters.path_resolvers.default.SearchPathResolver`.

Contents
--------
* :class:`EnvFileSessionBackend` – implements
  :class:`lib_auth_stores.application.ports.SessionBackend`.

System Role
-----------
Reads take the highest-priority existing file. Writes always target the first
search directory; unmanaged keys of the file being replaced are kept while the
keys of this namespace, and of every foreign namespace, are rewritten from the
record. An ``SAP_AUTH_TYPE`` pin already present in the file is rewritten to
the record's mode; files without one never gain it.
"""

from __future__ import annotations

from collections.abc import Iterable

from ...application.ports import PathResolver
from ...domain.models import Session
from ...domain.namespaces import EnvNamespace
from ...observability import log_debug
from ..codecs.atomic import remove_file
from ..codecs.env_file import EnvCodec

SESSION_SUFFIX = ".env"


class EnvFileSessionBackend:
    """Store one destination per ``{destination}.env`` file."""

    name = "env_file"

    def __init__(
        self,
        namespace: EnvNamespace,
        resolver: PathResolver,
        *,
        codec: EnvCodec | None = None,
        foreign_namespaces: Iterable[EnvNamespace] = (),
    ) -> None:
        """Bind the backend to a namespace and directory resolver.

        Parameters
        ----------
        namespace:
            Variables this backend reads and writes.
        resolver:
            Directory list shared with the owning store.
        codec:
            Env codec; a default :class:`EnvCodec` is created when omitted.
        foreign_namespaces:
            Namespaces whose keys are stripped whenever this backend writes.
        """

        self._namespace = namespace
        self._resolver = resolver
        self._codec = codec or EnvCodec()
        owned = set(namespace.managed_keys)
        for foreign in foreign_namespaces:
            owned |= foreign.managed_keys
        self._rewritten_keys = frozenset(owned)

    @property
    def resolver(self) -> PathResolver:
        return self._resolver

    def read(self, destination: str) -> Session | None:
        path = self._resolver.find(_file_name(destination))
        if path is None:
            log_debug("session_file_missing", store=self._namespace.name, destination=destination)
            return None
        variables = self._codec.load(path)
        if variables is None:
            return None
        return self._namespace.decode(variables, source=str(path))

    def write(self, destination: str, session: Session) -> None:
        file_name = _file_name(destination)
        target = self._resolver.write_path(file_name)
        source = self._resolver.find(file_name)
        existing = (self._codec.load(source) or {}) if source is not None else {}
        variables = self._namespace.encode(session)
        pin = self._namespace.auth_type_var
        if pin is not None and existing.get(pin, "").strip() and session.auth_type is not None:
            # A hand-written pin follows the record's mode instead of disappearing.
            variables[pin] = session.auth_type
        if source is not None and source != target:
            carried = {key: value for key, value in existing.items() if key not in self._rewritten_keys}
            variables = {**carried, **variables}
            log_debug("session_file_promoted", store=self._namespace.name, source=str(source), target=str(target))
        self._codec.save(target, variables, preserve_existing=True, discard=self._rewritten_keys)

    def delete(self, destination: str) -> bool:
        """Remove every copy of the destination's file across the search directories."""

        removed = False
        for path in self._resolver.find_all(_file_name(destination)):
            removed = remove_file(path) or removed
        return removed


def _file_name(destination: str) -> str:
    return f"{destination}{SESSION_SUFFIX}"
