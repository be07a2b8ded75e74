"""``cryptography``-backed implementation of :class:`~etoken_tool.core.protocols.SecretProtector`.

This module is the **only** place in the codebase that imports
``cryptography``.  Its exceptions are caught here and re-raised as
:class:`~etoken_tool.exceptions.SecretUnavailableError`.

Scopes
------
user
    A random Fernet key kept in ``<key dir>/user.key`` (mode ``0600``),
    created on first use.  Other accounts cannot read it.
machine
    A key derived with HKDF-SHA256 from the host's machine id, so any
    account on the same host can recover the secret.

Ciphertext layout: ``b"<scope>:" + fernet_token``.  The scope prefix lets
:meth:`FernetSecretProtector.unprotect` pick the key without being told.
"""

from __future__ import annotations

import base64
import logging
import os
import platform
import uuid
from pathlib import Path
from typing import Any

from etoken_tool.core.models import ProtectionScope
from etoken_tool.exceptions import EnvironmentError, SecretUnavailableError
from etoken_tool.infra.paths import default_config_dir

logger = logging.getLogger(__name__)

USER_KEY_FILE: str = "user.key"

_MACHINE_KEY_SALT: bytes = b"etoken-tool/machine-scope/v1"
_MACHINE_ID_FILES: tuple[str, ...] = ("/etc/machine-id", "/var/lib/dbus/machine-id")


def _import_fernet() -> Any:
    """Import the ``cryptography`` pieces lazily."""
    try:
        from cryptography import fernet
        from cryptography.hazmat.primitives import hashes
        from cryptography.hazmat.primitives.kdf.hkdf import HKDF
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "cryptography is not installed. Install with: pip install cryptography",
        ) from exc
    return fernet, hashes, HKDF


def read_machine_id() -> bytes:
    """Return a stable identifier of the local machine.

    Tries the systemd/dbus machine id, then the Windows ``MachineGuid``,
    then the hardware node id.
    """
    for candidate in _MACHINE_ID_FILES:
        try:
            value = Path(candidate).read_text(encoding="ascii").strip()
        except OSError:
            continue
        if value:
            return value.encode("ascii")

    if platform.system().lower() == "windows":
        try:
            import winreg

            with winreg.OpenKey(
                winreg.HKEY_LOCAL_MACHINE, r"SOFTWARE\Microsoft\Cryptography",
            ) as key:
                guid, _ = winreg.QueryValueEx(key, "MachineGuid")
            return str(guid).encode("ascii")
        except OSError:
            logger.debug("MachineGuid unavailable; falling back to node id.")

    return uuid.getnode().to_bytes(6, "big")


class FernetSecretProtector:
    """Concrete :class:`SecretProtector` built on Fernet tokens.

    Usage::

        protector = FernetSecretProtector()
        cipher = protector.protect(b"1234", ProtectionScope.USER)
        assert protector.unprotect(cipher) == b"1234"

    Parameters
    ----------
    key_dir:
        Directory holding the user-scope key.  Defaults to the
        per-user configuration directory.
    machine_id:
        Override for the machine identity (tests).
    """

    def __init__(self, key_dir: Path | None = None, machine_id: bytes | None = None) -> None:
        self._key_dir: Path = key_dir if key_dir is not None else default_config_dir()
        self._machine_id: bytes | None = machine_id

    @property
    def user_key_path(self) -> Path:
        return self._key_dir / USER_KEY_FILE

    # ------------------------------------------------------------------
    # Protocol methods
    # ------------------------------------------------------------------

    def protect(self, plain: bytes, scope: ProtectionScope) -> bytes:
        """Encrypt *plain* under *scope*.

        Raises
        ------
        SecretUnavailableError
            If the user key cannot be created or read.
        """
        fernet = self._fernet_for(scope, create=True)
        token: bytes = fernet.encrypt(bytes(plain))
        return scope.value.encode("ascii") + b":" + token

    def unprotect(self, cipher: bytes) -> bytes:
        """Decrypt *cipher* produced by :meth:`protect`.

        Raises
        ------
        SecretUnavailableError
            On unknown scope prefix, missing key, or authentication failure.
        """
        fernet_module, _, _ = _import_fernet()

        tag, separator, token = bytes(cipher).partition(b":")
        try:
            scope = ProtectionScope(tag.decode("ascii"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise SecretUnavailableError("Protected data has an unknown format.") from exc
        if not separator:
            raise SecretUnavailableError("Protected data has an unknown format.")

        fernet = self._fernet_for(scope, create=False)
        try:
            plain: bytes = fernet.decrypt(token)
        except fernet_module.InvalidToken as exc:
            raise SecretUnavailableError(
                f"Protected data cannot be decrypted with the {scope.value} key.",
                hint=(
                    "The entry was probably added by another user or on another "
                    "machine; add it again here."
                ),
            ) from exc
        return plain

    # ------------------------------------------------------------------
    # Key material
    # ------------------------------------------------------------------

    def _fernet_for(self, scope: ProtectionScope, *, create: bool) -> Any:
        fernet_module, _, _ = _import_fernet()
        if scope is ProtectionScope.MACHINE:
            key = self._machine_key()
        else:
            key = self._user_key(create=create)
        try:
            return fernet_module.Fernet(key)
        except ValueError as exc:
            raise SecretUnavailableError(
                f"The {scope.value} key is malformed.",
                hint=f"Delete {self.user_key_path} and add the entries again.",
            ) from exc

    def _machine_key(self) -> bytes:
        _, hashes, hkdf_class = _import_fernet()
        machine_id = self._machine_id if self._machine_id is not None else read_machine_id()
        hkdf = hkdf_class(
            algorithm=hashes.SHA256(),
            length=32,
            salt=_MACHINE_KEY_SALT,
            info=b"fernet-key",
        )
        return base64.urlsafe_b64encode(hkdf.derive(machine_id))

    def _user_key(self, *, create: bool) -> bytes:
        path = self.user_key_path
        try:
            return path.read_bytes().strip()
        except FileNotFoundError:
            if not create:
                raise SecretUnavailableError(
                    f"User key {path} does not exist.",
                    hint="Secrets protected for another user cannot be read by this account.",
                ) from None
        except OSError as exc:
            raise SecretUnavailableError(f"Cannot read user key {path}: {exc}") from exc

        return self._create_user_key(path)

    @staticmethod
    def _create_user_key(path: Path) -> bytes:
        fernet_module, _, _ = _import_fernet()
        key: bytes = fernet_module.Fernet.generate_key()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        except FileExistsError:
            # Created concurrently.
            return path.read_bytes().strip()
        except OSError as exc:
            raise SecretUnavailableError(f"Cannot create user key {path}: {exc}") from exc
        with os.fdopen(fd, "wb") as handle:
            handle.write(key)
        logger.debug("Created user key at %s.", path)
        return key
