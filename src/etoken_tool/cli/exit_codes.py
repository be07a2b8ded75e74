"""Exit-code constants used by the CLI layer.

Centralised here so that every exit path uses a well-known, tested
value rather than magic integers scattered across the codebase.  The
values are part of the tool's scripting interface and must not change.
"""

from __future__ import annotations

SUCCESS: int = 0
"""Clean exit — command completed without error."""

WRONG_PARAMETERS: int = 1
"""Missing or malformed command-line arguments."""

UNKNOWN_COMMAND: int = 2
"""The command verb is not recognised."""

TOKEN_OPEN_FAILED: int = 3
"""The token container could not be acquired."""

SET_PASSWORD_FAILED: int = 4
"""The token rejected the stored password."""

RECORD_NOT_FOUND: int = 5
"""No registry entry matches the requested id or alias."""

DECRYPT_FAILED: int = 6
"""The stored password could not be protected or recovered."""

GENERAL_ERROR: int = 7
"""Any other failure, including unhandled exceptions."""

KEYBOARD_INTERRUPT: int = 130
"""User pressed Ctrl+C.  Follows POSIX convention (128 + SIGINT=2)."""
