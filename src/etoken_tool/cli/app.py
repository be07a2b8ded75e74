"""CLI application entry point and command routing for etoken-tool.

This module is the **sole error boundary** for the entire application.
It catches :class:`~etoken_tool.exceptions.EtokenToolError`,
``KeyboardInterrupt``, and any unexpected ``Exception``, rendering
user-friendly messages via the console proxy and returning well-defined
exit codes.

Architecture notes
------------------
* Arguments are read with :class:`~etoken_tool.core.arguments.ArgumentIndex`;
  switches may be written ``-name`` or ``/name``.
* No business logic lives here — all work is delegated to the core
  services and infrastructure adapters.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from etoken_tool.cli import exit_codes
from etoken_tool.cli.console import configure_logging, console
from etoken_tool.core.arguments import ArgumentIndex
from etoken_tool.exceptions import (
    EtokenToolError,
    InvalidArgumentError,
    RecordNotFoundError,
    SecretUnavailableError,
    TokenOpenError,
    TokenSecretError,
    UnknownCommandError,
)
from etoken_tool.version import __version__

if TYPE_CHECKING:
    from etoken_tool.core.credential_store import CredentialStore

USAGE: str = """\
usage:
  etoken-tool add    [-config <file>] -token <container-id> [-password <password>] [-alias <alias>] [-machine]
  etoken-tool remove [-config <file>] -id <container-id | alias>
  etoken-tool login  [-config <file>] [-id <container-id | alias>] [-module <pkcs11-library>]
  etoken-tool test   [-config <file>] [-id <container-id | alias>] [-module <pkcs11-library>]
  etoken-tool list   [-config <file>]
  etoken-tool doctor
  etoken-tool -version

Common switches: -verbose (debug logging), -help.
"""

# Most specific classes first; the first isinstance match wins.
_EXIT_CODES: tuple[tuple[type[EtokenToolError], int], ...] = (
    (InvalidArgumentError, exit_codes.WRONG_PARAMETERS),
    (UnknownCommandError, exit_codes.UNKNOWN_COMMAND),
    (TokenOpenError, exit_codes.TOKEN_OPEN_FAILED),
    (TokenSecretError, exit_codes.SET_PASSWORD_FAILED),
    (RecordNotFoundError, exit_codes.RECORD_NOT_FOUND),
    (SecretUnavailableError, exit_codes.DECRYPT_FAILED),
)


def exit_code_for(exc: EtokenToolError) -> int:
    """Map a domain error to its process exit code."""
    for error_class, code in _EXIT_CODES:
        if isinstance(exc, error_class):
            return code
    return exit_codes.GENERAL_ERROR


# ---------------------------------------------------------------------------
# Shared wiring
# ---------------------------------------------------------------------------

def _config_path(args: ArgumentIndex) -> Path:
    from etoken_tool.core.credential_store import resolve_config_path
    from etoken_tool.infra.paths import default_config_path

    return resolve_config_path(args, default_config_path())


def _load_store(path: Path) -> CredentialStore:
    """Build the registry with the default protector and load *path*."""
    from etoken_tool.core.credential_store import CredentialStore
    from etoken_tool.infra.fernet_protector import FernetSecretProtector

    store = CredentialStore(FernetSecretProtector())
    store.load(path)
    return store


def _require_value(args: ArgumentIndex, switch: str, command: str) -> str:
    value = args.get_switch_value(switch)
    if value is None or not value.strip():
        raise InvalidArgumentError(
            f"The '{command}' command requires a non-empty '-{switch}' value.",
            hint="See 'etoken-tool -help'.",
        )
    return value


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------

def _handle_add(args: ArgumentIndex) -> int:
    """Register a token password, protected for the user or the machine."""
    from etoken_tool.core.models import ProtectionScope

    token = _require_value(args, "token", "add")
    alias = args.get_switch_value("alias")
    password = args.get_switch_value("password")

    if password is None and not args.has_switch("password") and sys.stdin.isatty():
        from etoken_tool.cli.prompts import prompt_password

        password = prompt_password(token)
    if password is None or not password.strip():
        raise InvalidArgumentError(
            "The 'add' command requires a non-empty '-password' value.",
            hint="A password starting with '-' cannot be passed on the command line; "
            "omit -password to be prompted instead.",
        )

    scope = ProtectionScope.MACHINE if args.has_switch("machine") else ProtectionScope.USER
    path = _config_path(args)
    store = _load_store(path)
    record = store.add_entry(token, password, alias, scope=scope)
    store.save(path)

    suffix = f" as '{record.alias}'" if record.alias else ""
    console.print(f"[green]Added token '{record.container_id}'{suffix} ({scope.value} scope).[/green]")
    return exit_codes.SUCCESS


def _handle_remove(args: ArgumentIndex) -> int:
    """Remove a token by container id or alias."""
    token_or_alias = _require_value(args, "id", "remove")
    path = _config_path(args)
    store = _load_store(path)

    if not store.remove_entry(token_or_alias):
        raise RecordNotFoundError(f"Token '{token_or_alias}' not found in config.")
    store.save(path)

    console.print(f"[green]Removed token '{token_or_alias}'.[/green]")
    return exit_codes.SUCCESS


def _handle_unlock(args: ArgumentIndex, *, login: bool) -> int:
    """Open one or all registered tokens; with *login*, submit the password."""
    from etoken_tool.core.unlock_service import UnlockService
    from etoken_tool.infra.pkcs11_unlocker import Pkcs11ToolUnlocker

    store = _load_store(_config_path(args))
    service = UnlockService(store, Pkcs11ToolUnlocker(module=args.get_switch_value("module")))
    target = args.get_switch_value("id")

    processed = service.login(target) if login else service.check(target)
    if not processed:
        console.print("[yellow]No tokens registered.[/yellow]")
    verb = "Logged in to" if login else "Opened"
    for container_id in processed:
        console.print(f"[green]{verb} token '{container_id}'.[/green]")
    return exit_codes.SUCCESS


def _handle_login(args: ArgumentIndex) -> int:
    return _handle_unlock(args, login=True)


def _handle_test(args: ArgumentIndex) -> int:
    return _handle_unlock(args, login=False)


def _handle_list(args: ArgumentIndex) -> int:
    """Show registered containers and aliases."""
    from etoken_tool.cli.listing import render_entries

    store = _load_store(_config_path(args))
    render_entries(store.entries)
    return exit_codes.SUCCESS


def _handle_doctor(args: ArgumentIndex) -> int:
    """Dispatch the ``doctor`` diagnostics command."""
    from etoken_tool.cli.doctor import run_doctor

    return run_doctor(_config_path(args))


_COMMANDS: dict[str, Callable[[ArgumentIndex], int]] = {
    "add": _handle_add,
    "remove": _handle_remove,
    "login": _handle_login,
    "test": _handle_test,
    "list": _handle_list,
    "doctor": _handle_doctor,
}


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the etoken-tool CLI.

    Parameters
    ----------
    argv:
        Explicit argument list (without program name).  When ``None``
        (default), ``sys.argv`` is used.

    Returns
    -------
    int
        OS process exit code.

    Raises
    ------
    EtokenToolError
        For every failure; :func:`cli` maps it to an exit code.
    """
    if argv is None:
        args = ArgumentIndex(sys.argv, first_is_program_name=True)
    else:
        args = ArgumentIndex(argv)

    configure_logging(verbose=args.has_switch("verbose"))

    if args.has_switch("version"):
        console.print(f"etoken-tool {__version__}")
        return exit_codes.SUCCESS

    if len(args) == 0 or args.has_switch("help") or args.has_switch("?"):
        console.print(USAGE)
        return exit_codes.SUCCESS

    is_switch, name = args.is_switch_at(0)
    if is_switch:
        raise InvalidArgumentError(
            f"Expected a command before '-{name}'.",
            hint="See 'etoken-tool -help'.",
        )

    command = args.token_at(0).lower()
    handler = _COMMANDS.get(command)
    if handler is None:
        raise UnknownCommandError(
            f"Unknown command '{args.token_at(0)}'.",
            hint="Valid commands: " + ", ".join(_COMMANDS),
        )

    extra = args.positionals()[1:]
    if extra:
        raise InvalidArgumentError(
            "Unexpected argument(s): " + " ".join(extra),
            hint="Values must follow their switch, e.g. '-id my-token'.",
        )

    return handler(args)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli(argv: list[str] | None = None) -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main(argv)
        sys.exit(code)
    except EtokenToolError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        sys.exit(exit_code_for(exc))
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.GENERAL_ERROR)
