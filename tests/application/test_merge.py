"""Merge and auth-mode rule tests.

Purpose
-------
Pin the "present overwrites, absent keeps" merge semantics and the mutual
exclusivity of the ABAP auth modes, independently of any backend.
"""

from __future__ import annotations

from dataclasses import fields

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_auth_stores.application.merge import apply_auth_mode, merge_session, read_mode, update_mode
from lib_auth_stores.domain.models import Session

FIELD_NAMES = [item.name for item in fields(Session) if item.name != "auth_type"]
OPTIONAL_TEXT = st.one_of(st.none(), st.text(max_size=8))


@st.composite
def sessions(draw: st.DrawFn) -> Session:
    return Session(**{name: draw(OPTIONAL_TEXT) for name in FIELD_NAMES})


@given(sessions(), sessions())
def test_plain_merge_keeps_absent_and_overwrites_present(current: Session, update: Session) -> None:
    """Without auth modes every present update field wins and absent ones keep the old value."""

    merged = merge_session(current, update, auth_modes=False)

    for name in FIELD_NAMES:
        expected = getattr(update, name) if getattr(update, name) is not None else getattr(current, name)
        assert getattr(merged, name) == expected


@given(sessions(), sessions())
def test_auth_modes_never_leave_two_modes_active(current: Session, update: Session) -> None:
    merged = merge_session(current, update)
    mode = update_mode(update)

    if mode == "saml":
        assert merged.username is None and merged.password is None
        assert merged.authorization_token == ""
    elif mode == "basic":
        assert merged.session_cookies is None
        assert merged.authorization_token == ""
    elif mode == "jwt":
        assert merged.username is None and merged.password is None and merged.session_cookies is None


def test_merge_onto_nothing_returns_update() -> None:
    update = Session(service_url="https://a", sap_client="001")

    assert merge_session(None, update, auth_modes=False) == update


def test_empty_string_is_a_present_value() -> None:
    merged = merge_session(Session(service_url="https://a", sap_client="001"), Session(sap_client=""))

    assert merged.sap_client == ""
    assert merged.service_url == "https://a"


def test_fields_only_update_keeps_current_mode() -> None:
    basic = Session(service_url="https://a", username="u", password="p", auth_type="basic", authorization_token="")

    merged = merge_session(basic, Session(language="DE"))

    assert merged.auth_type == "basic"
    assert merged.username == "u"
    assert merged.language == "DE"


def test_fields_only_update_enforces_pinned_mode() -> None:
    pinned = Session(service_url="https://a", username="u", password="p", authorization_token="stale", auth_type="basic")

    merged = merge_session(pinned, Session(refresh_token="r"))

    assert (merged.auth_type, merged.authorization_token, merged.username) == ("basic", "", "u")


def test_switching_basic_to_jwt_drops_credentials() -> None:
    basic = Session(service_url="https://a", username="u", password="p", auth_type="basic")

    merged = merge_session(basic, Session(authorization_token="t"))

    assert (merged.auth_type, merged.authorization_token, merged.username, merged.password) == ("jwt", "t", None, None)


def test_switching_saml_to_basic_drops_cookies() -> None:
    saml = Session(service_url="https://a", session_cookies="SAP_SESSIONID=1", auth_type="saml", authorization_token="")

    merged = merge_session(saml, Session(username="u", password="p"))

    assert merged.auth_type == "basic"
    assert merged.session_cookies is None
    assert merged.authorization_token == ""


@pytest.mark.parametrize(
    ("update", "expected"),
    [
        (Session(auth_type="basic", session_cookies="c"), "basic"),
        (Session(session_cookies="c", authorization_token="t"), "saml"),
        (Session(username="u", password="p"), "basic"),
        (Session(username="u", password="p", authorization_token="t"), "jwt"),
        (Session(username="u"), None),
        (Session(authorization_token=""), None),
        (Session(refresh_token="r"), None),
    ],
)
def test_update_mode_precedence(update: Session, expected: str | None) -> None:
    assert update_mode(update) == expected


@pytest.mark.parametrize(
    ("session", "expected"),
    [
        (Session(auth_type="saml"), "saml"),
        (Session(session_cookies="c"), "saml"),
        (Session(username="u", password="p"), "basic"),
        (Session(username="u", password="p", authorization_token="t"), "jwt"),
        (Session(service_url="https://a"), "jwt"),
    ],
)
def test_read_mode_precedence(session: Session, expected: str) -> None:
    assert read_mode(session) == expected


def test_apply_auth_mode_sets_the_mode() -> None:
    full = Session(authorization_token="t", username="u", password="p", session_cookies="c", sap_client="001")

    assert apply_auth_mode(full, "jwt") == Session(authorization_token="t", sap_client="001", auth_type="jwt")
    assert apply_auth_mode(full, "basic") == Session(
        authorization_token="", username="u", password="p", sap_client="001", auth_type="basic"
    )
    assert apply_auth_mode(full, "saml") == Session(
        authorization_token="", session_cookies="c", sap_client="001", auth_type="saml"
    )
