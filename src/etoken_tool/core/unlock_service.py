"""Core unlock service — drives registered secrets into their tokens.

Depends on a :class:`~etoken_tool.core.credential_store.CredentialStore`
and a :class:`~etoken_tool.core.protocols.TokenUnlocker` injected at
construction time.

Guarantees
----------
* No ``print()``, no direct filesystem access.
* Plaintext secrets exist only inside ``CredentialStore.revealed``.
* Only :class:`~etoken_tool.exceptions.EtokenToolError` subclasses escape.
* Processing stops at the first failing container.
"""

from __future__ import annotations

import logging

from etoken_tool.core.credential_store import CredentialStore
from etoken_tool.core.models import CredentialRecord, TokenHandle
from etoken_tool.core.protocols import TokenUnlocker
from etoken_tool.exceptions import (
    EtokenToolError,
    RecordNotFoundError,
    TokenOpenError,
    TokenSecretError,
)

logger = logging.getLogger(__name__)


class UnlockService:
    """Open tokens and, optionally, log in with their stored secrets.

    Parameters
    ----------
    store:
        Loaded credential registry.
    unlocker:
        Any object satisfying the :class:`TokenUnlocker` protocol.
    """

    def __init__(self, store: CredentialStore, unlocker: TokenUnlocker) -> None:
        self._store: CredentialStore = store
        self._unlocker: TokenUnlocker = unlocker

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def check(self, container_id_or_alias: str | None = None) -> list[str]:
        """Verify that the token(s) can be opened without logging in.

        With no argument every registered container is checked.

        Returns
        -------
        list[str]
            Canonical container ids that were processed.

        Raises
        ------
        RecordNotFoundError
            If *container_id_or_alias* is not registered.
        TokenOpenError
            If a token cannot be acquired.
        """
        return [self._access(record, submit_secret=False) for record in self._select(container_id_or_alias)]

    def login(self, container_id_or_alias: str | None = None) -> list[str]:
        """Open the token(s) and submit the stored secret.

        Raises
        ------
        RecordNotFoundError
            If *container_id_or_alias* is not registered.
        TokenOpenError
            If a token cannot be acquired.
        SecretUnavailableError
            If a stored secret cannot be decrypted.
        TokenSecretError
            If a token rejects its secret.
        """
        return [self._access(record, submit_secret=True) for record in self._select(container_id_or_alias)]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _select(self, container_id_or_alias: str | None) -> tuple[CredentialRecord, ...]:
        if container_id_or_alias is None:
            return self._store.entries
        record = self._store.get_entry(container_id_or_alias)
        if record is None:
            raise RecordNotFoundError(
                f"Token '{container_id_or_alias}' not found in config.",
                hint="Run 'etoken-tool list' to see registered tokens.",
            )
        return (record,)

    def _access(self, record: CredentialRecord, *, submit_secret: bool) -> str:
        container_id = record.container_id
        handle = self._open(container_id)
        logger.debug("Opened token %s via %s.", container_id, handle.provider)

        if submit_secret:
            with self._store.revealed(record.protected_secret) as secret:
                accepted = self._submit(handle, secret)
            if not accepted:
                raise TokenSecretError(
                    f"Failed to set password for token '{container_id}'.",
                    hint="The stored password may be outdated; remove and re-add the entry.",
                )
            logger.debug("Token %s accepted its password.", container_id)

        return container_id

    def _open(self, container_id: str) -> TokenHandle:
        try:
            handle = self._unlocker.open(container_id)
        except EtokenToolError:
            raise
        except Exception as exc:
            raise TokenOpenError(f"Unable to open token '{container_id}': {exc}") from exc
        if handle is None:
            raise TokenOpenError(
                f"Unable to open token '{container_id}'.",
                hint="Check that the token is plugged in and the container id is correct.",
            )
        return handle

    def _submit(self, handle: TokenHandle, secret: bytearray) -> bool:
        try:
            return self._unlocker.set_secret(handle, secret)
        except EtokenToolError:
            raise
        except Exception as exc:
            raise TokenSecretError(
                f"Failed to set password for token '{handle.container_id}': {exc}",
            ) from exc
