"""Interactive password entry for the ``add`` command.

Input is hidden; the password is asked twice and must match.  All
questionary usage lives here.
"""

from __future__ import annotations

from typing import Any

from etoken_tool.exceptions import EnvironmentError, InvalidArgumentError


def _import_questionary() -> Any:
    """Import questionary lazily for interactive input."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "questionary is not installed. Install with: pip install questionary",
            hint="Or pass the password with -password.",
        ) from exc
    return questionary


def prompt_password(container_id: str) -> str:
    """Ask for the password of *container_id* with hidden input.

    Raises
    ------
    InvalidArgumentError
        If the prompt is cancelled, the password is empty, or the two
        entries differ.
    """
    questionary = _import_questionary()

    first: str | None = questionary.password(f"Password for token '{container_id}':").ask()
    if not first:
        raise InvalidArgumentError("No password entered.")

    second: str | None = questionary.password("Repeat password:").ask()
    if first != second:
        raise InvalidArgumentError("Passwords do not match.")

    return first
