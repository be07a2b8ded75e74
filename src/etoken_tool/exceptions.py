"""Custom exception hierarchy for etoken-tool.

All exceptions that cross layer boundaries must inherit from
:class:`EtokenToolError`.  Raw third-party exceptions (``cryptography``,
``subprocess``, ``OSError``) must not propagate beyond the layer that
triggered them — they are caught and re-raised as a typed subclass
defined here, with the original chained as ``__cause__``.

Routine misses (unknown switch, unknown container) are *not* exceptions;
they are returned as ``None`` / ``False`` / ``-1`` and only the CLI turns
them into :class:`RecordNotFoundError`.

Hierarchy
---------
EtokenToolError
├── InvalidArgumentError
│   └── ArgumentParseError
├── UnknownCommandError
├── DuplicateKeyError
├── RecordNotFoundError
├── SecretUnavailableError
├── ConfigIOError
├── TokenOpenError
├── TokenSecretError
└── EnvironmentError
"""

from __future__ import annotations


class EtokenToolError(Exception):
    """Base exception for all etoken-tool errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Arguments -------------------------------------------------------------

class InvalidArgumentError(EtokenToolError):
    """Raised when a caller or the command line supplies an unusable argument."""


class ArgumentParseError(InvalidArgumentError):
    """Raised when a switch value cannot be parsed as the requested number."""


class UnknownCommandError(EtokenToolError):
    """Raised when the command verb is not recognised."""


# --- Registry --------------------------------------------------------------

class DuplicateKeyError(EtokenToolError):
    """Raised when a container id or alias is already registered."""


class RecordNotFoundError(EtokenToolError):
    """Raised by callers that require a registry entry which does not exist."""


class SecretUnavailableError(EtokenToolError):
    """Raised when a protected secret cannot be produced or recovered.

    Typical causes: the ciphertext was written under another user or
    machine scope, the key material is missing, or the data is corrupt.
    """


class ConfigIOError(EtokenToolError):
    """Raised when the registry file cannot be read or written."""


# --- Token -----------------------------------------------------------------

class TokenOpenError(EtokenToolError):
    """Raised when a token container cannot be acquired."""


class TokenSecretError(EtokenToolError):
    """Raised when the token rejects the submitted secret."""


# --- Environment / tooling -------------------------------------------------

class EnvironmentError(EtokenToolError):
    """Raised when a required runtime dependency or tool is not available."""
