"""Shared sandbox helpers for store and CLI tests.

A sandbox is a pair of search directories plus an isolated environment mapping
so tests never read the developer's ``AUTH_BROKER_PATH`` or working directory.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

ABAP_SERVICE_KEY: dict[str, Any] = {
    "uaa": {
        "url": "https://trial.authentication.eu10.hana.ondemand.com",
        "clientid": "sb-abap-trial",
        "clientsecret": "abap-secret",
    },
    "abap": {"url": "https://trial.abap.eu10.hana.ondemand.com", "client": "100", "language": "EN"},
    "url": "https://trial.abap.eu10.hana.ondemand.com",
    "systemid": "TRL",
}

XSUAA_SERVICE_KEY: dict[str, Any] = {
    "url": "https://x.authentication.test",
    "clientid": "c",
    "clientsecret": "s",
    "abap": {"url": "https://x.abap.test", "client": "001"},
}

LONG_TOKEN = "eyJhbGciOiJSUzI1NiJ9." + "a" * 80 + ".signature"


@dataclass
class CredentialSandbox:
    """Two search directories (``primary`` wins) and an isolated environment."""

    root: Path
    primary: Path
    secondary: Path
    cwd: Path
    env: dict[str, str] = field(default_factory=dict)

    @property
    def search_paths(self) -> list[Path]:
        return [self.primary, self.secondary]

    def write_service_key(self, destination: str, payload: Mapping[str, Any] | str, *, directory: Path | None = None) -> Path:
        target = (directory or self.primary) / f"{destination}.json"
        text = payload if isinstance(payload, str) else json.dumps(payload, indent=2)
        target.write_text(text, encoding="utf-8")
        return target

    def write_session(self, destination: str, content: str, *, directory: Path | None = None) -> Path:
        target = (directory or self.primary) / f"{destination}.env"
        target.write_text(content, encoding="utf-8")
        return target

    def session_file(self, destination: str, *, directory: Path | None = None) -> Path:
        return (directory or self.primary) / f"{destination}.env"

    def read_session_lines(self, destination: str, *, directory: Path | None = None) -> list[str]:
        return self.session_file(destination, directory=directory).read_text(encoding="utf-8").splitlines()


def create_credential_sandbox(tmp_path: Path, *, with_env_paths: bool = False) -> CredentialSandbox:
    """Create the directory pair under *tmp_path*.

    With *with_env_paths* the pair is exported through ``AUTH_BROKER_PATH`` in
    :attr:`CredentialSandbox.env` instead of being passed explicitly.
    """

    primary = tmp_path / "primary"
    secondary = tmp_path / "secondary"
    cwd = tmp_path / "cwd"
    for directory in (primary, secondary, cwd):
        directory.mkdir(parents=True, exist_ok=True)
    env: dict[str, str] = {}
    if with_env_paths:
        env["AUTH_BROKER_PATH"] = f"{primary}:{secondary}"
    return CredentialSandbox(root=tmp_path, primary=primary, secondary=secondary, cwd=cwd, env=env)


__all__ = [
    "ABAP_SERVICE_KEY",
    "LONG_TOKEN",
    "XSUAA_SERVICE_KEY",
    "CredentialSandbox",
    "create_credential_sandbox",
]
