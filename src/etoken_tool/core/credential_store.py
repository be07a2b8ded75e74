"""Alias-addressable registry of token secrets, protected at rest.

The registry owns three things: the container → record map (primary key,
case-insensitive), the alias → container secondary index, and the
flat-file persistence of both.  Secrets enter through a
:class:`~etoken_tool.core.protocols.SecretProtector` and are only ever
stored in protected form.

File format
-----------
One record per line, UTF-8::

    containerId[#alias]=protectedSecret

The first ``=`` splits key from value and the first ``#`` in the key
splits container id from alias.  ``#`` and ``=`` cannot be escaped, so
they are rejected in ids and aliases.

Guarantees
----------
* Every alias refers to an existing record; a record has at most one alias.
* ``load`` never re-encrypts; ``save`` rewrites the whole file.
* Only :class:`~etoken_tool.exceptions.EtokenToolError` subclasses escape.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from etoken_tool.core.arguments import ArgumentIndex
from etoken_tool.core.models import CredentialRecord, ProtectionScope
from etoken_tool.core.protocols import SecretProtector
from etoken_tool.exceptions import (
    ConfigIOError,
    DuplicateKeyError,
    EtokenToolError,
    InvalidArgumentError,
    SecretUnavailableError,
)

logger = logging.getLogger(__name__)

CONFIG_SWITCH: str = "config"

_RESERVED_CHARS: tuple[str, ...] = ("#", "=", "\n", "\r")


def resolve_config_path(args: ArgumentIndex, default: Path) -> Path:
    """Return the ``-config`` switch value as a path, else *default*."""
    value = args.get_switch_value(CONFIG_SWITCH)
    return Path(value).expanduser() if value else default


class CredentialStore:
    """In-memory registry with explicit load/save.

    Parameters
    ----------
    protector:
        Any object satisfying the :class:`SecretProtector` protocol.
    """

    def __init__(self, protector: SecretProtector) -> None:
        self._protector: SecretProtector = protector
        # lowered container id -> record (insertion ordered)
        self._records: dict[str, CredentialRecord] = {}
        # lowered alias -> lowered container id
        self._aliases: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def entries(self) -> tuple[CredentialRecord, ...]:
        """All records in insertion order."""
        return tuple(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, container_id_or_alias: object) -> bool:
        if not isinstance(container_id_or_alias, str):
            return False
        return self._resolve(container_id_or_alias) is not None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self, path: Path) -> None:
        """Replace the registry contents with the records in *path*.

        A missing file yields an empty registry.  Malformed or
        conflicting lines are skipped.

        Raises
        ------
        ConfigIOError
            If the file exists but cannot be read or decoded.
        """
        self._records.clear()
        self._aliases.clear()

        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No registry at %s; starting empty.", path)
            return
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigIOError(
                f"Cannot read registry file {path}: {exc}",
                hint="Check the file permissions or pass another file with -config.",
            ) from exc

        # Only "\n" ends a record; ids may contain other line-break characters.
        for line_no, line in enumerate(text.split("\n"), start=1):
            line = line.rstrip("\r")
            parsed = self._parse_line(line)
            if parsed is None:
                if line.strip():
                    logger.debug("Skipping malformed line %d in %s.", line_no, path)
                continue
            container_id, alias, protected = parsed
            try:
                self.add_entry(container_id, protected, alias, encrypt=False)
            except (DuplicateKeyError, InvalidArgumentError) as exc:
                logger.warning("Skipping line %d in %s: %s", line_no, path, exc)

        logger.debug("Loaded %d record(s) from %s.", len(self._records), path)

    def save(self, path: Path) -> None:
        """Write every record to *path*, replacing its contents.

        The records go to a temporary file beside *path* which then
        replaces it, so a failed write leaves the previous file intact.

        Raises
        ------
        ConfigIOError
            If the directory or file cannot be written.
        """
        lines: list[str] = []
        for record in self._records.values():
            key = record.container_id
            if record.alias is not None:
                key = f"{key}#{record.alias}"
            lines.append(f"{key}={record.protected_secret}")

        content = "".join(f"{line}\n" for line in lines)
        tmp_name: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
                handle.write(content)
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise ConfigIOError(
                f"Cannot write registry file {path}: {exc}",
            ) from exc

        logger.debug("Saved %d record(s) to %s.", len(lines), path)

    @staticmethod
    def _parse_line(line: str) -> tuple[str, str | None, str] | None:
        """Split one registry line into (container id, alias, protected secret)."""
        split_at = line.find("=")
        if split_at <= 0:
            return None

        key = line[:split_at].strip()
        protected = line[split_at + 1:].strip()
        alias: str | None = None

        hash_at = key.find("#")
        if hash_at >= 0:
            alias = key[hash_at + 1:].strip() or None
            key = key[:hash_at].strip()

        if not key:
            return None
        return key, alias, protected

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_entry(
        self,
        container_id: str,
        secret: str | bytes,
        alias: str | None = None,
        *,
        encrypt: bool = True,
        scope: ProtectionScope = ProtectionScope.USER,
    ) -> CredentialRecord:
        """Register *container_id* with *secret* and an optional *alias*.

        With *encrypt* the secret is plaintext and is protected under
        *scope*; without it the secret is already protected text and is
        stored verbatim.

        Raises
        ------
        InvalidArgumentError
            If the id is empty or the id/alias contains ``#``, ``=`` or a
            line break.
        DuplicateKeyError
            If the container id or the alias is already registered.
        SecretUnavailableError
            If the protector fails.
        """
        container_id = (container_id or "").strip()
        if not container_id:
            raise InvalidArgumentError("Container id must not be empty.")
        self._check_reserved("Container id", container_id)

        alias = alias.strip() if alias is not None and alias.strip() else None
        if alias is not None:
            self._check_reserved("Alias", alias)

        key = container_id.lower()
        if key in self._records:
            raise DuplicateKeyError(
                f"Container '{container_id}' is already registered.",
                hint="Remove it first to replace its password.",
            )
        if alias is not None and alias.lower() in self._aliases:
            owner = self._records[self._aliases[alias.lower()]].container_id
            raise DuplicateKeyError(f"Alias '{alias}' is already used by container '{owner}'.")

        if encrypt:
            protected = self._protect(secret, scope)
        else:
            protected = secret.decode("ascii") if isinstance(secret, bytes) else secret

        record = CredentialRecord(container_id=container_id, protected_secret=protected, alias=alias)
        self._records[key] = record
        if alias is not None:
            self._aliases[alias.lower()] = key
        return record

    def remove_entry(self, container_id_or_alias: str) -> bool:
        """Remove the record addressed by id or alias, together with its alias.

        Returns ``False`` when nothing matched.
        """
        key = self._resolve(container_id_or_alias)
        if key is None:
            return False
        record = self._records.pop(key)
        if record.alias is not None:
            self._aliases.pop(record.alias.lower(), None)
        return True

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_entry(self, container_id_or_alias: str) -> CredentialRecord | None:
        """Return the record addressed by alias or container id, else ``None``."""
        key = self._resolve(container_id_or_alias)
        return self._records[key] if key is not None else None

    def get_alias_for(self, container_id: str) -> str | None:
        record = self._records.get((container_id or "").strip().lower())
        return record.alias if record is not None else None

    def _resolve(self, container_id_or_alias: str) -> str | None:
        """Map an alias or a container id to the primary key (aliases win)."""
        if not container_id_or_alias:
            return None
        lowered = container_id_or_alias.strip().lower()
        key = self._aliases.get(lowered, lowered)
        return key if key in self._records else None

    @staticmethod
    def _check_reserved(label: str, value: str) -> None:
        if any(ch in value for ch in _RESERVED_CHARS):
            raise InvalidArgumentError(
                f"{label} '{value}' contains a reserved character.",
                hint="'#' and '=' are delimiters in the registry file.",
            )

    # ------------------------------------------------------------------
    # Protection (safe boundary)
    # ------------------------------------------------------------------

    def _protect(self, secret: str | bytes, scope: ProtectionScope) -> str:
        plain = secret.encode("utf-8") if isinstance(secret, str) else bytes(secret)
        try:
            cipher = self._protector.protect(plain, scope)
        except EtokenToolError:
            raise
        except Exception as exc:
            raise SecretUnavailableError(f"Failed to protect secret: {exc}") from exc
        return base64.b64encode(cipher).decode("ascii")

    def decrypt_secret(self, protected_secret: str) -> bytes:
        """Recover the plaintext of *protected_secret*.

        Callers must drop the result right after use; prefer
        :meth:`revealed`.

        Raises
        ------
        SecretUnavailableError
            If the text is not valid base64 or the protector refuses it.
        """
        try:
            cipher = base64.b64decode(protected_secret.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as exc:
            raise SecretUnavailableError(
                "Stored password is not valid protected data.",
                hint="Remove the entry and add it again.",
            ) from exc

        try:
            return self._protector.unprotect(cipher)
        except EtokenToolError:
            raise
        except Exception as exc:
            raise SecretUnavailableError(f"Failed to decrypt secret: {exc}") from exc

    @contextmanager
    def revealed(self, protected_secret: str) -> Iterator[bytearray]:
        """Yield the plaintext in a buffer that is zeroed on exit."""
        buffer = bytearray(self.decrypt_secret(protected_secret))
        try:
            yield buffer
        finally:
            buffer[:] = bytes(len(buffer))
