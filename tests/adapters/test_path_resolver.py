"""Path resolver tests covering directory priority and platform splitting.

Every test passes ``env`` and ``cwd`` explicitly so the developer's
``AUTH_BROKER_PATH`` and working directory never leak in.
"""

from __future__ import annotations

import os
from pathlib import Path

from lib_auth_stores.adapters.path_resolvers.default import (
    SearchPathResolver,
    find_file_in_paths,
    resolve_search_paths,
)
from tests.support import create_credential_sandbox


def _norm(path: Path) -> Path:
    return Path(os.path.normpath(str(path)))


def test_explicit_paths_outrank_environment(tmp_path: Path) -> None:
    """Explicit directories come first, then AUTH_BROKER_PATH entries, duplicates removed."""

    explicit = tmp_path / "explicit"
    from_env = tmp_path / "env"
    env = {"AUTH_BROKER_PATH": f"{from_env}:{explicit}"}

    resolved = resolve_search_paths(explicit, env=env, cwd=tmp_path, platform="linux")

    assert resolved == [_norm(explicit), _norm(from_env)]


def test_cwd_used_only_without_other_sources(tmp_path: Path) -> None:
    """The working directory is a fallback, not an extra entry."""

    assert resolve_search_paths(env={}, cwd=tmp_path, platform="linux") == [_norm(tmp_path)]
    assert _norm(tmp_path) not in resolve_search_paths(tmp_path / "a", env={}, cwd=tmp_path, platform="linux")


def test_environment_split_on_colon_and_semicolon(tmp_path: Path) -> None:
    env = {"AUTH_BROKER_PATH": "/one;/two:/three::"}

    resolved = resolve_search_paths(env=env, cwd=tmp_path, platform="linux")

    assert resolved == [Path("/one"), Path("/two"), Path("/three")]


def test_windows_keeps_drive_letters(tmp_path: Path) -> None:
    """On Windows only ';' separates entries so 'C:' survives."""

    env = {"AUTH_BROKER_PATH": r"C:\keys;D:\more"}

    resolved = resolve_search_paths(env=env, cwd=tmp_path, platform="win32")

    assert len(resolved) == 2
    assert str(resolved[0]).endswith(r"C:\keys")
    assert str(resolved[1]).endswith(r"D:\more")


def test_relative_entries_resolve_against_cwd(tmp_path: Path) -> None:
    resolved = resolve_search_paths(["keys", "./keys/../keys"], env={}, cwd=tmp_path, platform="linux")

    assert resolved == [_norm(tmp_path / "keys")]


def test_blank_explicit_entries_are_ignored(tmp_path: Path) -> None:
    assert resolve_search_paths(["", "  "], env={}, cwd=tmp_path, platform="linux") == [_norm(tmp_path)]


def test_find_file_returns_highest_priority_match(tmp_path: Path) -> None:
    sandbox = create_credential_sandbox(tmp_path)
    low = sandbox.write_session("TRIAL", "SAP_URL=https://low\n", directory=sandbox.secondary)

    assert find_file_in_paths("TRIAL.env", sandbox.search_paths) == low

    high = sandbox.write_session("TRIAL", "SAP_URL=https://high\n")
    assert find_file_in_paths("TRIAL.env", sandbox.search_paths) == high
    assert find_file_in_paths("MISSING.env", sandbox.search_paths) is None


def test_find_ignores_directories_with_the_file_name(tmp_path: Path) -> None:
    sandbox = create_credential_sandbox(tmp_path)
    (sandbox.primary / "TRIAL.env").mkdir()
    expected = sandbox.write_session("TRIAL", "SAP_URL=https://a\n", directory=sandbox.secondary)

    assert find_file_in_paths("TRIAL.env", sandbox.search_paths) == expected


def test_search_path_resolver_reads_environment_mapping(tmp_path: Path) -> None:
    sandbox = create_credential_sandbox(tmp_path, with_env_paths=True)
    sandbox.write_session("TRIAL", "A=1\n")
    sandbox.write_session("TRIAL", "A=2\n", directory=sandbox.secondary)

    resolver = SearchPathResolver(env=sandbox.env, cwd=sandbox.cwd, platform="linux")

    assert resolver.search_paths == [_norm(sandbox.primary), _norm(sandbox.secondary)]
    assert resolver.find_all("TRIAL.env") == [sandbox.primary / "TRIAL.env", sandbox.secondary / "TRIAL.env"]
    assert resolver.write_path("NEW.env") == _norm(sandbox.primary) / "NEW.env"


def test_search_paths_property_returns_copy(tmp_path: Path) -> None:
    resolver = SearchPathResolver(tmp_path, env={})
    resolver.search_paths.append(Path("/elsewhere"))

    assert resolver.search_paths == [_norm(tmp_path)]
