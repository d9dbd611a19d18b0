"""End-to-end coverage for the file-backed ABAP and XSUAA session stores.

The stores are driven exactly as the auth broker drives them: service key
first, then token refreshes, then reads after a simulated restart (a fresh
store instance over the same directories).
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from lib_auth_stores import (
    AbapSessionStore,
    AuthorizationConfig,
    ConnectionConfig,
    FileServiceKeyStore,
    InvalidConfig,
    ParseError,
    StorageError,
    XsuaaSessionStore,
)
from lib_auth_stores.adapters.codecs import atomic
from tests.support import ABAP_SERVICE_KEY, CredentialSandbox, create_credential_sandbox


@pytest.fixture()
def sandbox(tmp_path: Path) -> CredentialSandbox:
    return create_credential_sandbox(tmp_path)


def _abap(sandbox: CredentialSandbox, **kwargs) -> AbapSessionStore:
    return AbapSessionStore(sandbox.search_paths, env={}, **kwargs)


def _xsuaa(sandbox: CredentialSandbox) -> XsuaaSessionStore:
    return XsuaaSessionStore(sandbox.search_paths, env={})


def test_broker_flow_survives_restart(sandbox: CredentialSandbox) -> None:
    """Seed from the service key, refresh the token, and read it back from disk."""

    sandbox.write_service_key("TRIAL", ABAP_SERVICE_KEY)
    keys = FileServiceKeyStore(sandbox.search_paths, env={})
    store = _abap(sandbox)

    store.set_connection_config("TRIAL", keys.get_connection_config("TRIAL"))
    store.set_authorization_config("TRIAL", keys.get_authorization_config("TRIAL"))
    store.set_connection_config("TRIAL", ConnectionConfig(authorization_token="t1"))
    store.set_authorization_config("TRIAL", AuthorizationConfig(refresh_token="r1"))

    restarted = _abap(sandbox)
    view = restarted.get_connection_config("TRIAL")
    assert view == ConnectionConfig(
        service_url="https://trial.abap.eu10.hana.ondemand.com",
        authorization_token="t1",
        sap_client="100",
        language="EN",
        auth_type="jwt",
    )
    assert restarted.get_authorization_config("TRIAL").refresh_token == "r1"
    assert "SAP_JWT_TOKEN=t1" in sandbox.read_session_lines("TRIAL")
    assert not any(line.startswith("SAP_AUTH_TYPE") for line in sandbox.read_session_lines("TRIAL"))


def test_abap_store_requires_service_url_on_creation(sandbox: CredentialSandbox) -> None:
    with pytest.raises(InvalidConfig):
        _abap(sandbox).set_connection_config("TRIAL", ConnectionConfig(authorization_token="t"))

    assert not sandbox.session_file("TRIAL").exists()


def test_default_service_url_is_persisted(sandbox: CredentialSandbox) -> None:
    _abap(sandbox, default_service_url="https://default").set_connection_config(
        "TRIAL", ConnectionConfig(authorization_token="t")
    )

    assert "SAP_URL=https://default" in sandbox.read_session_lines("TRIAL")


def test_saml_cookies_are_base64_on_disk(sandbox: CredentialSandbox) -> None:
    store = _abap(sandbox)
    store.set_connection_config("TRIAL", ConnectionConfig(service_url="https://a", session_cookies="c=1"))

    lines = sandbox.read_session_lines("TRIAL")
    assert "SAP_SESSION_COOKIES_B64=Yz0x" in lines
    assert "SAP_JWT_TOKEN=" in lines
    assert _abap(sandbox).get_connection_config("TRIAL").session_cookies == "c=1"


def test_basic_mode_round_trip_and_switch_to_jwt(sandbox: CredentialSandbox) -> None:
    store = _abap(sandbox)
    store.set_connection_config("TRIAL", {"serviceUrl": "https://a", "username": "u", "password": "p w"})
    assert _abap(sandbox).get_connection_config("TRIAL").auth_type == "basic"
    assert 'SAP_PASSWORD="p w"' in sandbox.read_session_lines("TRIAL")

    store.set_connection_config("TRIAL", ConnectionConfig(authorization_token="t"))

    lines = sandbox.read_session_lines("TRIAL")
    assert not any(line.startswith(("SAP_USERNAME", "SAP_PASSWORD")) for line in lines)
    assert _abap(sandbox).get_connection_config("TRIAL").auth_type == "jwt"


def test_hand_written_auth_type_pin_is_honoured(sandbox: CredentialSandbox) -> None:
    sandbox.write_session(
        "TRIAL", "SAP_URL=https://a\nSAP_AUTH_TYPE=basic\nSAP_USERNAME=u\nSAP_PASSWORD=p\nSAP_JWT_TOKEN=t\n"
    )

    view = _abap(sandbox).get_connection_config("TRIAL")

    assert view is not None
    assert (view.auth_type, view.username, view.authorization_token) == ("basic", "u", None)


def test_auth_type_pin_survives_a_refresh_write(sandbox: CredentialSandbox) -> None:
    """A token refresh keeps the pinned mode and clears the stale token of another mode."""

    sandbox.write_session(
        "TRIAL", "SAP_URL=https://a\nSAP_AUTH_TYPE=basic\nSAP_USERNAME=u\nSAP_PASSWORD=p\nSAP_JWT_TOKEN=stale\n"
    )

    _abap(sandbox).set_authorization_config("TRIAL", AuthorizationConfig(refresh_token="r1"))

    lines = sandbox.read_session_lines("TRIAL")
    assert "SAP_AUTH_TYPE=basic" in lines
    assert "SAP_JWT_TOKEN=stale" not in lines
    view = _abap(sandbox).get_connection_config("TRIAL")
    assert view is not None
    assert (view.auth_type, view.username, view.password) == ("basic", "u", "p")


def test_auth_type_pin_follows_a_mode_switch(sandbox: CredentialSandbox) -> None:
    sandbox.write_session("TRIAL", "SAP_URL=https://a\nSAP_AUTH_TYPE=basic\nSAP_USERNAME=u\nSAP_PASSWORD=p\n")

    _abap(sandbox).set_connection_config("TRIAL", ConnectionConfig(authorization_token="t"))

    lines = sandbox.read_session_lines("TRIAL")
    assert "SAP_AUTH_TYPE=jwt" in lines
    assert not any(line.startswith(("SAP_USERNAME", "SAP_PASSWORD")) for line in lines)
    assert _abap(sandbox).get_connection_config("TRIAL").authorization_token == "t"


def test_writes_keep_unmanaged_keys_and_strip_foreign_namespace(sandbox: CredentialSandbox) -> None:
    sandbox.write_session("TRIAL", "# operator notes\nCUSTOM=keep\nSAP_URL=https://a\nSAP_JWT_TOKEN=old\n")

    _xsuaa(sandbox).set_connection_config("TRIAL", ConnectionConfig(authorization_token="x"))

    lines = sandbox.read_session_lines("TRIAL")
    assert "CUSTOM=keep" in lines
    assert "XSUAA_JWT_TOKEN=x" in lines
    assert not any(line.startswith("SAP_") for line in lines)


def test_xsuaa_update_without_storable_fields_writes_nothing(sandbox: CredentialSandbox) -> None:
    store = _xsuaa(sandbox)

    store.set_connection_config("MCP", ConnectionConfig(sap_client="001"))

    assert not sandbox.session_file("MCP").exists()
    assert store.load_session("MCP") is None


def test_write_promotes_lower_priority_file(sandbox: CredentialSandbox) -> None:
    """Updating a session found in the secondary directory writes a merged copy into the primary one."""

    sandbox.write_session("TRIAL", "CUSTOM=keep\nSAP_URL=https://a\nSAP_JWT_TOKEN=old\nSAP_CLIENT=100\n", directory=sandbox.secondary)

    _abap(sandbox).set_connection_config("TRIAL", ConnectionConfig(authorization_token="new"))

    lines = sandbox.read_session_lines("TRIAL")
    assert {"CUSTOM=keep", "SAP_URL=https://a", "SAP_JWT_TOKEN=new", "SAP_CLIENT=100"} <= set(lines)
    assert "SAP_JWT_TOKEN=old" in sandbox.read_session_lines("TRIAL", directory=sandbox.secondary)


def test_delete_removes_every_copy(sandbox: CredentialSandbox) -> None:
    sandbox.write_session("TRIAL", "SAP_URL=https://a\n")
    sandbox.write_session("TRIAL", "SAP_URL=https://b\n", directory=sandbox.secondary)
    store = _abap(sandbox)

    store.delete_session("TRIAL")
    store.delete_session("TRIAL")

    assert store.load_session("TRIAL") is None
    assert not sandbox.session_file("TRIAL").exists()
    assert not sandbox.session_file("TRIAL", directory=sandbox.secondary).exists()


def test_corrupt_session_file_raises(sandbox: CredentialSandbox) -> None:
    sandbox.write_session("TRIAL", "SAP_URL=https://a\nthis line is broken\n")

    with pytest.raises(ParseError):
        _abap(sandbox).get_connection_config("TRIAL")


def test_failed_rename_keeps_previous_file(sandbox: CredentialSandbox, monkeypatch: pytest.MonkeyPatch) -> None:
    path = sandbox.write_session("TRIAL", "SAP_URL=https://a\nSAP_JWT_TOKEN=old\n")

    def _fail(*_args, **_kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(atomic.os, "replace", _fail)
    with pytest.raises(StorageError) as excinfo:
        _abap(sandbox).set_connection_config("TRIAL", ConnectionConfig(authorization_token="new"))

    assert excinfo.value.operation == "write"
    assert path.read_text(encoding="utf-8") == "SAP_URL=https://a\nSAP_JWT_TOKEN=old\n"
    assert sorted(os.listdir(sandbox.primary)) == ["TRIAL.env"]


def test_search_paths_follow_environment(tmp_path: Path) -> None:
    sandbox = create_credential_sandbox(tmp_path, with_env_paths=True)

    store = AbapSessionStore(env=sandbox.env, cwd=sandbox.cwd)

    assert store.get_search_paths() == [sandbox.primary, sandbox.secondary]
