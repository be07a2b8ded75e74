"""Domain models for etoken-tool.

All models are **frozen** dataclasses — immutable value objects with no
behaviour beyond data access.  They carry zero I/O and zero
dependencies on external packages.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


# ---------------------------------------------------------------------------
# Protection scope
# ---------------------------------------------------------------------------

class ProtectionScope(str, Enum):
    """Which key a secret is protected with."""

    USER = "user"
    """Only the user who protected the secret can recover it."""

    MACHINE = "machine"
    """Any user on the machine that protected the secret can recover it."""


# ---------------------------------------------------------------------------
# Registry record
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CredentialRecord:
    """One registry entry: a token container and its protected secret."""

    container_id: str
    """Container id as originally registered (lookups ignore case)."""

    protected_secret: str
    """Base64 text of the protector's ciphertext.  Never plaintext."""

    alias: str | None = None
    """Optional friendly name, unique across the registry."""


# ---------------------------------------------------------------------------
# Token handle
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TokenHandle:
    """An acquired token container, as returned by a token unlocker."""

    container_id: str
    provider: str
