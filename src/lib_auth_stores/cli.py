"""CLI adapter for ``lib_auth_stores`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators inspect what the auth broker would see for a destination (which
directories are searched, which service key and session are found) without
writing Python code.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – ``-h`` alias for every command.
* :func:`cli` – root command wiring traceback handling into ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata.
* :func:`cli_search_paths` – resolved search directories as JSON.
* :func:`cli_service_key` – composed service-key view as JSON.
* :func:`cli_session` – stored session as JSON.
* :func:`cli_delete_session` – removes a stored session.
* :func:`main` – console-script entry point returning the exit code.

System Role
-----------
Outermost layer: it only talks to :mod:`lib_auth_stores.core`. Secrets are
masked in every output unless ``--show-secrets`` is given.
"""

from __future__ import annotations

import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Final, Mapping, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.path_resolvers.default import resolve_search_paths
from .core import AbapSessionStore, FileServiceKeyStore, XsuaaSessionStore

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000

KIND_CHOICES: Final[tuple[str, ...]] = ("abap", "xsuaa")
SECRET_KEYS: Final[frozenset[str]] = frozenset(
    {"authorizationToken", "password", "sessionCookies", "uaaClientSecret", "refreshToken"}
)
MASK: Final[str] = "***"

_path_option = click.option(
    "--path",
    "paths",
    multiple=True,
    type=click.Path(path_type=Path, file_okay=False, dir_okay=True),
    help="Search directory (repeatable); defaults to AUTH_BROKER_PATH, then the working directory",
)
_indent_option = click.option(
    "--indent",
    type=int,
    default=2,
    show_default=True,
    help="Indent size of the JSON output",
)
_secrets_option = click.option(
    "--show-secrets/--mask-secrets",
    default=False,
    help="Print tokens, passwords, cookies, and client secrets in clear text",
)


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` for source checkouts."""

    try:
        return metadata.version("lib_auth_stores")
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Inspect SAP auth-broker service keys and sessions",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name="lib_auth_stores",
    message="lib_auth_stores version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Diagnostics for the credential files the auth broker reads.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Show which lib_auth_stores distribution is installed."""

    try:
        meta = metadata.metadata("lib_auth_stores")
    except metadata.PackageNotFoundError:
        click.echo("lib_auth_stores (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', 'lib_auth_stores')}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("search-paths", context_settings=CLICK_CONTEXT_SETTINGS)
@_path_option
def cli_search_paths(paths: Sequence[Path]) -> None:
    """Print the directories searched for credential files, highest priority first.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> result = CliRunner().invoke(cli, ["search-paths", "--path", "/srv/keys"])
    >>> json.loads(result.output)[0]
    '/srv/keys'
    """

    resolved = resolve_search_paths(_paths_argument(paths))
    click.echo(json.dumps([str(path) for path in resolved], indent=2))


@cli.command("service-key", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("destination")
@_path_option
@_indent_option
@_secrets_option
def cli_service_key(destination: str, paths: Sequence[Path], indent: int, show_secrets: bool) -> None:
    """Print the connection and authorization views of DESTINATION's service key."""

    store = FileServiceKeyStore(_paths_argument(paths))
    session = store.get_service_key(destination)
    if session is None:
        raise click.ClickException(
            f"No service key {destination}.json found in: {', '.join(str(p) for p in store.get_search_paths())}"
        )
    click.echo(_render(session.to_dict(), indent=indent, show_secrets=show_secrets))


@cli.command("session", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("destination")
@click.option("--kind", type=click.Choice(KIND_CHOICES, case_sensitive=False), default="abap", show_default=True)
@_path_option
@_indent_option
@_secrets_option
def cli_session(destination: str, kind: str, paths: Sequence[Path], indent: int, show_secrets: bool) -> None:
    """Print the session stored for DESTINATION."""

    store = _session_store(kind, paths)
    session = store.load_session(destination)
    if session is None:
        raise click.ClickException(
            f"No {kind.lower()} session {destination}.env found in: "
            f"{', '.join(str(p) for p in store.get_search_paths())}"
        )
    click.echo(_render(session.to_dict(), indent=indent, show_secrets=show_secrets))


@cli.command("delete-session", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("destination")
@click.option("--kind", type=click.Choice(KIND_CHOICES, case_sensitive=False), default="abap", show_default=True)
@_path_option
def cli_delete_session(destination: str, kind: str, paths: Sequence[Path]) -> None:
    """Delete the session stored for DESTINATION (no-op when absent)."""

    _session_store(kind, paths).delete_session(destination)
    click.echo(f"Deleted {kind.lower()} session {destination}")


def _session_store(kind: str, paths: Sequence[Path]) -> AbapSessionStore | XsuaaSessionStore:
    store_cls = AbapSessionStore if kind.lower() == "abap" else XsuaaSessionStore
    return store_cls(_paths_argument(paths))


def _paths_argument(paths: Sequence[Path]) -> Optional[list[Path]]:
    """Return ``None`` when no ``--path`` was given so the environment applies."""

    return list(paths) if paths else None


def _render(payload: Mapping[str, str], *, indent: int, show_secrets: bool) -> str:
    """Serialise *payload* as JSON, masking non-empty secrets unless requested.

    Examples
    --------
    >>> _render({'serviceUrl': 'https://a', 'password': 'p'}, indent=0, show_secrets=False)
    '{\\n"serviceUrl": "https://a",\\n"password": "***"\\n}'
    """

    if not show_secrets:
        payload = {key: (MASK if key in SECRET_KEYS and value else value) for key, value in payload.items()}
    return json.dumps(payload, indent=indent)


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Run :func:`cli` through ``lib_cli_exit_tools`` and return the process exit code.

    Library errors that escape a command are printed (summary or full traceback
    depending on ``--traceback``) and mapped to a non-zero code.
    """

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name="lib_auth_stores",
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
