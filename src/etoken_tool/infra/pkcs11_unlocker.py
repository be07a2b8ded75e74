"""OpenSC ``pkcs11-tool`` backed implementation of :class:`~etoken_tool.core.protocols.TokenUnlocker`.

This module is the **only** place in the codebase that spawns a
subprocess.  Tool discovery follows the same probe/require split as the
rest of the infrastructure layer: :func:`detect_pkcs11_tool` never
raises, :func:`require_pkcs11_tool` raises
:class:`~etoken_tool.exceptions.EnvironmentError` with install guidance.

Rules
-----
* The PIN is handed to the child through its environment
  (``--pin env:NAME``), never on the command line.
* The PIN is never logged.
* Tool failures are reported as ``None`` / ``False`` — the core decides
  which error to raise.
"""

from __future__ import annotations

import logging
import os
import platform
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from etoken_tool.core.models import TokenHandle
from etoken_tool.exceptions import EnvironmentError

logger = logging.getLogger(__name__)

TOOL_NAME: str = "pkcs11-tool"
PIN_ENV_VAR: str = "ETOKEN_TOOL_PIN"


# ---------------------------------------------------------------------------
# Detection result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Pkcs11ToolStatus:
    """Result of a ``pkcs11-tool`` detection probe.

    Attributes
    ----------
    found : bool
        Whether the tool was located on PATH.
    path : Path | None
        Absolute path to the binary, or ``None``.
    install_commands : tuple[str, ...]
        Suggested shell commands for installing OpenSC on the current
        platform.  Empty when the tool is already present.
    """

    found: bool
    path: Path | None
    install_commands: tuple[str, ...]


# ---------------------------------------------------------------------------
# Detection logic
# ---------------------------------------------------------------------------

def detect_pkcs11_tool() -> Pkcs11ToolStatus:
    """Probe PATH for ``pkcs11-tool``."""
    result = shutil.which(TOOL_NAME)
    if result is not None:
        return Pkcs11ToolStatus(found=True, path=Path(result).resolve(), install_commands=())
    return Pkcs11ToolStatus(found=False, path=None, install_commands=_platform_install_commands())


def require_pkcs11_tool() -> Path:
    """Locate ``pkcs11-tool`` or raise :class:`EnvironmentError`."""
    status = detect_pkcs11_tool()
    if not status.found or status.path is None:
        hint_lines = ["Install OpenSC using one of:"]
        hint_lines.extend(f"  {cmd}" for cmd in status.install_commands)
        raise EnvironmentError(
            f"{TOOL_NAME} is not installed or not on PATH.",
            hint="\n".join(hint_lines),
        )
    return status.path


def _platform_install_commands() -> tuple[str, ...]:
    """Return OpenSC install commands appropriate for the current OS."""
    system = platform.system().lower()
    if system == "windows":
        return (
            "choco install opensc",
            "Download the installer from https://github.com/OpenSC/OpenSC/releases",
        )
    if system == "linux":
        return (
            "sudo apt install opensc",
            "sudo dnf install opensc",
            "sudo pacman -S opensc",
        )
    if system == "darwin":
        return ("brew install opensc",)
    return ("Please install OpenSC from https://github.com/OpenSC/OpenSC",)


# ---------------------------------------------------------------------------
# Unlocker
# ---------------------------------------------------------------------------

class Pkcs11ToolUnlocker:
    """Concrete :class:`TokenUnlocker` that shells out to ``pkcs11-tool``.

    A container id is matched against the PKCS#11 token label.

    Parameters
    ----------
    module:
        Path of the vendor PKCS#11 library; ``None`` lets the tool use
        its built-in default (OpenSC).
    tool:
        Explicit path to ``pkcs11-tool``; discovered on PATH when omitted.
    """

    def __init__(self, module: str | None = None, tool: Path | None = None) -> None:
        self._module: str | None = module
        self._tool: Path | None = tool

    @property
    def provider(self) -> str:
        return self._module or TOOL_NAME

    # ------------------------------------------------------------------
    # Protocol methods
    # ------------------------------------------------------------------

    def open(self, container_id: str) -> TokenHandle | None:
        """Check that a token labelled *container_id* is present."""
        completed = self._run(self._base_command(container_id) + ["--list-objects"])
        if completed.returncode != 0:
            logger.debug(
                "%s could not open %s (exit %d): %s",
                TOOL_NAME,
                container_id,
                completed.returncode,
                completed.stderr.strip(),
            )
            return None
        return TokenHandle(container_id=container_id, provider=self.provider)

    def set_secret(self, handle: TokenHandle, secret: bytes | bytearray) -> bool:
        """Log in to *handle* with *secret* as the user PIN."""
        try:
            pin = bytes(secret).decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Password for %s is not valid UTF-8.", handle.container_id)
            return False

        env = dict(os.environ)
        env[PIN_ENV_VAR] = pin
        command = self._base_command(handle.container_id) + [
            "--login",
            "--pin",
            f"env:{PIN_ENV_VAR}",
            "--list-objects",
        ]
        completed = self._run(command, env=env)
        if completed.returncode != 0:
            logger.debug(
                "%s login to %s failed (exit %d).",
                TOOL_NAME,
                handle.container_id,
                completed.returncode,
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Subprocess plumbing
    # ------------------------------------------------------------------

    def _base_command(self, container_id: str) -> list[str]:
        if self._tool is None:
            self._tool = require_pkcs11_tool()
        command = [str(self._tool)]
        if self._module:
            command += ["--module", self._module]
        command += ["--token-label", container_id]
        return command

    @staticmethod
    def _run(
        command: list[str],
        *,
        env: dict[str, str] | None = None,
    ) -> subprocess.CompletedProcess[str]:
        try:
            return subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=False,
                env=env,
                stdin=subprocess.DEVNULL,
            )
        except OSError as exc:
            raise EnvironmentError(
                f"Failed to run {TOOL_NAME}: {exc}",
                hint="Run 'etoken-tool doctor' to check the installation.",
            ) from exc
