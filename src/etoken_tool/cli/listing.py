"""Rendering of the ``list`` command.

Writes to stdout — the listing is the command's result, not a status
message — as a Rich table, or as plain lines when Rich is missing.
"""

from __future__ import annotations

from collections.abc import Sequence

from etoken_tool.cli.console import get_rich_console
from etoken_tool.core.models import CredentialRecord
from etoken_tool.exceptions import EnvironmentError


def _format_plain(entries: Sequence[CredentialRecord]) -> str:
    """Build the plain-text listing: a count line, then one line per entry."""
    lines = [f"{len(entries)} entries found:"]
    for record in entries:
        line = f"  {record.container_id}"
        if record.alias is not None:
            line += f" as '{record.alias}'"
        lines.append(line)
    return "\n".join(lines)


def render_entries(entries: Sequence[CredentialRecord]) -> None:
    """Print the registered containers and their aliases."""
    try:
        from rich.table import Table

        stdout_console = get_rich_console(stderr=False)
    except (ModuleNotFoundError, EnvironmentError):
        print(_format_plain(entries))
        return

    table = Table(
        title=f"{len(entries)} entries found",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("#", justify="right", style="dim", width=4)
    table.add_column("Container", style="bold", min_width=20)
    table.add_column("Alias", min_width=10)

    for i, record in enumerate(entries, start=1):
        table.add_row(str(i), record.container_id, record.alias or "—")

    stdout_console.print(table)
