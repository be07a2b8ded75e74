"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols — never on concrete
implementations — so the registry and the unlock flow can be exercised
with in-memory fakes.
"""

from __future__ import annotations

from typing import Protocol

from etoken_tool.core.models import ProtectionScope, TokenHandle


class SecretProtector(Protocol):
    """Contract for at-rest secret protection backends.

    Any object that implements :meth:`protect` and :meth:`unprotect`
    with the correct signatures satisfies this protocol structurally
    (no explicit inheritance required).
    """

    def protect(self, plain: bytes, scope: ProtectionScope) -> bytes:
        """Encrypt *plain* with the key selected by *scope*.

        Raises
        ------
        SecretUnavailableError
            When the key for *scope* cannot be obtained.
        """
        ...  # pragma: no cover

    def unprotect(self, cipher: bytes) -> bytes:
        """Recover the plaintext of *cipher*.

        The scope is carried by the ciphertext itself; callers do not
        pass it.  Implementations must fail loudly, never return garbage.

        Raises
        ------
        SecretUnavailableError
            On wrong-scope key, missing key material or corrupt input.
        """
        ...  # pragma: no cover


class TokenUnlocker(Protocol):
    """Contract for hardware-token backends.

    Failures are reported as return values (``None`` / ``False``); the
    core decides which typed error to raise.
    """

    def open(self, container_id: str) -> TokenHandle | None:
        """Acquire the container named *container_id*, or return ``None``."""
        ...  # pragma: no cover

    def set_secret(self, handle: TokenHandle, secret: bytes | bytearray) -> bool:
        """Submit *secret* as the PIN of *handle*; ``True`` on success."""
        ...  # pragma: no cover
