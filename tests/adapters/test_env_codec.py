"""Env codec tests for quoting, comments, strict parsing, and atomic saves.

Purpose
-------
Session files are hand-edited as often as they are machine-written, so these
tests pin the reader's tolerance (comments, quotes, CRLF) and the writer's
guarantees (quoting, unmanaged keys kept, no temp file left behind).
"""

from __future__ import annotations

from pathlib import Path

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_auth_stores.adapters.codecs.atomic import TMP_SUFFIX
from lib_auth_stores.adapters.codecs.env_file import EnvCodec
from lib_auth_stores.domain.errors import ParseError, StorageError

KEYS = st.from_regex(r"[A-Z_][A-Z0-9_]{0,15}", fullmatch=True)
VALUES = st.text(alphabet=st.characters(min_codepoint=32, max_codepoint=126), max_size=40)


def test_parse_skips_blank_and_comment_lines() -> None:
    text = "\n# header\n   \nSAP_URL=https://a\n  # indented comment\n"

    assert EnvCodec().parse(text) == {"SAP_URL": "https://a"}


def test_parse_accepts_crlf_line_endings() -> None:
    assert EnvCodec().parse("A=1\r\nB=2\r\n") == {"A": "1", "B": "2"}


def test_parse_keeps_hash_without_leading_whitespace() -> None:
    """A '#' glued to the value is data (URL fragments), not a comment."""

    assert EnvCodec().parse("SAP_URL=https://host/#frag # note\n") == {"SAP_URL": "https://host/#frag"}


def test_parse_unquotes_and_unescapes() -> None:
    text = 'A="two words # kept"\nB=\'single\'\nC="say \\"hi\\" \\\\ done"\n'

    assert EnvCodec().parse(text) == {"A": "two words # kept", "B": "single", "C": 'say "hi" \\ done'}


def test_parse_value_may_contain_equals() -> None:
    assert EnvCodec().parse("SAP_SESSION_COOKIES_B64=YT1i==\n") == {"SAP_SESSION_COOKIES_B64": "YT1i=="}


def test_parse_empty_value_is_present() -> None:
    assert EnvCodec().parse("SAP_JWT_TOKEN=\n") == {"SAP_JWT_TOKEN": ""}


@pytest.mark.parametrize("line", ["JUST_A_WORD", "=value"])
def test_parse_rejects_malformed_lines(line: str) -> None:
    with pytest.raises(ParseError) as excinfo:
        EnvCodec().parse(f"A=1\n{line}\n", source="TRIAL.env")

    assert "line 2" in str(excinfo.value)
    assert excinfo.value.file_path == "TRIAL.env"


def test_serialize_quotes_only_when_needed() -> None:
    rendered = EnvCodec().serialize({"PLAIN": "abc", "SPACED": "a b", "HASHED": "x#y", "EMPTY": ""})

    assert rendered == 'PLAIN=abc\nSPACED="a b"\nHASHED="x#y"\nEMPTY=\n'


def test_serialize_rejects_line_breaks() -> None:
    with pytest.raises(StorageError) as excinfo:
        EnvCodec().serialize({"SAP_PASSWORD": "line1\nline2"})

    assert excinfo.value.operation == "serialize"


@given(st.dictionaries(KEYS, VALUES, max_size=6))
def test_serialized_variables_parse_back_unchanged(variables: dict[str, str]) -> None:
    """Whatever the writer emits, the reader recovers exactly."""

    codec = EnvCodec()

    assert codec.parse(codec.serialize(variables)) == variables


def test_load_returns_none_for_missing_file(tmp_path: Path) -> None:
    assert EnvCodec().load(tmp_path / "absent.env") is None


def test_load_raises_parse_error_for_invalid_utf8(tmp_path: Path) -> None:
    target = tmp_path / "TRIAL.env"
    target.write_bytes(b"SAP_URL=\xff\xfe\n")

    with pytest.raises(ParseError):
        EnvCodec().load(target)


def test_save_preserves_unmanaged_keys_and_drops_discarded(tmp_path: Path) -> None:
    target = tmp_path / "TRIAL.env"
    target.write_text("OTHER=keep\nSAP_URL=https://old\nSAP_PASSWORD=secret\n", encoding="utf-8")

    EnvCodec().save(target, {"SAP_URL": "https://new"}, discard={"SAP_PASSWORD"})

    assert target.read_text(encoding="utf-8").splitlines() == ["OTHER=keep", "SAP_URL=https://new"]
    assert not (tmp_path / f"TRIAL.env{TMP_SUFFIX}").exists()


def test_save_without_preserve_replaces_everything(tmp_path: Path) -> None:
    target = tmp_path / "TRIAL.env"
    target.write_text("OTHER=keep\n", encoding="utf-8")

    EnvCodec().save(target, {"SAP_URL": "https://new"}, preserve_existing=False)

    assert target.read_text(encoding="utf-8") == "SAP_URL=https://new\n"


def test_save_creates_missing_directories(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b" / "TRIAL.env"

    EnvCodec().save(target, {"SAP_URL": "https://a"})

    assert EnvCodec().load(target) == {"SAP_URL": "https://a"}
