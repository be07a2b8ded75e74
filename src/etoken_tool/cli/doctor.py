"""``etoken-tool doctor`` — environment diagnostics command.

Gathers system information and renders a Rich table summarising
whether the runtime environment satisfies etoken-tool's requirements.

This module lives in the CLI layer — it may import from ``infra``
and ``core``, and it renders via Rich.  No business logic resides
here; it purely collects and displays diagnostic data.
"""

from __future__ import annotations

import platform
import sys
from pathlib import Path

from etoken_tool.cli import exit_codes
from etoken_tool.cli.console import console
from etoken_tool.infra.paths import default_config_path
from etoken_tool.infra.pkcs11_unlocker import detect_pkcs11_tool
from etoken_tool.version import __version__


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _python_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the Python version row."""
    version = platform.python_version()
    ok = sys.version_info[:2] >= (3, 10)
    status = "[green]OK[/green]" if ok else "[red]FAIL (>=3.10 required)[/red]"
    return "Python", version, status


def _cryptography_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the cryptography row."""
    try:
        import cryptography
    except ImportError:
        return "cryptography", "NOT INSTALLED", "[red]FAIL[/red]"
    return "cryptography", getattr(cryptography, "__version__", "unknown"), "[green]OK[/green]"


def _pkcs11_tool_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the pkcs11-tool row.

    Missing is a warning: ``add``, ``remove`` and ``list`` still work.
    """
    status_obj = detect_pkcs11_tool()
    if status_obj.found:
        return "pkcs11-tool", str(status_obj.path) if status_obj.path else "found", "[green]OK[/green]"
    return "pkcs11-tool", "not found", "[yellow]WARN[/yellow]"


def _config_check(config_path: Path) -> tuple[str, str, str]:
    """Return (label, value, status) for the registry file row."""
    if config_path.is_file():
        return "Config", str(config_path), "[green]OK[/green]"
    return "Config", f"{config_path} (not created yet)", "[green]OK[/green]"


def _os_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the OS row."""
    system_raw = platform.system()
    system_display = {
        "Windows": "Windows",
        "Linux": "Linux",
        "Darwin": "macOS",
    }.get(system_raw, system_raw)
    value = f"{system_display} {platform.release()} ({platform.machine()})"
    return "OS", value, "[green]OK[/green]"


def _etoken_tool_version_check() -> tuple[str, str, str]:
    """Return (label, value, status) for the etoken-tool version row."""
    return "etoken-tool", __version__, "[green]OK[/green]"


def _status_plain(status: str) -> str:
    """Convert rich-markup status to plain text."""
    if "FAIL" in status:
        return "FAIL"
    if "WARN" in status:
        return "WARN"
    if "OK" in status:
        return "OK"
    return status


def _print_plain_doctor_table(checks: list[tuple[str, str, str]]) -> None:
    """Render doctor output without Rich."""
    print("\netoken-tool doctor", file=sys.stderr)
    print("=" * 64, file=sys.stderr)
    print(f"{'Component':<14} {'Value':<40} {'Status':<8}", file=sys.stderr)
    print("-" * 64, file=sys.stderr)
    for label, value, status in checks:
        print(f"{label:<14} {value:<40} {_status_plain(status):<8}", file=sys.stderr)
    print(file=sys.stderr)


def _emit(rich_text: str, plain_text: str, rich_available: bool) -> None:
    if rich_available:
        console.print(rich_text)
    else:
        print(plain_text, file=sys.stderr)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_doctor(config_path: Path | None = None) -> int:
    """Execute all diagnostic checks and render a summary table.

    Returns
    -------
    int
        :data:`exit_codes.SUCCESS` when all critical checks pass,
        :data:`exit_codes.GENERAL_ERROR` if a critical check fails.
    """
    checks = [
        _etoken_tool_version_check(),
        _python_version_check(),
        _cryptography_check(),
        _pkcs11_tool_check(),
        _config_check(config_path or default_config_path()),
        _os_check(),
    ]
    has_failure = any("FAIL" in status for _, _, status in checks)

    rich_available = True
    try:
        from rich.table import Table
    except ModuleNotFoundError:
        rich_available = False

    if rich_available:
        table = Table(
            title="etoken-tool doctor",
            show_header=True,
            header_style="bold cyan",
            border_style="dim",
        )
        table.add_column("Component", style="bold", min_width=14)
        table.add_column("Value", min_width=20)
        table.add_column("Status", justify="center", min_width=8)
        for label, value, status in checks:
            table.add_row(label, value, status)

        console.print()
        console.print(table)
        console.print()
    else:
        _print_plain_doctor_table(checks)

    tool_status = detect_pkcs11_tool()
    if not tool_status.found and tool_status.install_commands:
        _emit(
            "[yellow]pkcs11-tool is not installed; 'login' and 'test' will fail.[/yellow]",
            "pkcs11-tool is not installed; 'login' and 'test' will fail.",
            rich_available,
        )
        _emit("Install OpenSC using one of the following:\n", "Install OpenSC using one of the following:\n", rich_available)
        for cmd in tool_status.install_commands:
            _emit(f"  [bold]{cmd}[/bold]", f"  {cmd}", rich_available)
        _emit("", "", rich_available)

    if has_failure:
        _emit("[bold red]Some checks failed.[/bold red]", "Some checks failed.", rich_available)
        return exit_codes.GENERAL_ERROR

    _emit("[bold green]All checks passed.[/bold green]", "All checks passed.", rich_available)
    return exit_codes.SUCCESS
