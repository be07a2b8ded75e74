"""Shared pytest fixtures and configuration for the etoken-tool test suite.

Guidelines
----------
* No real tokens, no real ``pkcs11-tool`` — the unlocker is faked or
  ``subprocess.run`` is mocked at the infra boundary.
* Core tests use in-memory protector fakes; only the Fernet protector
  tests touch ``cryptography``.
* Every test gets its own config directory — nothing is written to the
  real home directory.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from etoken_tool.core.models import ProtectionScope, TokenHandle
from etoken_tool.exceptions import SecretUnavailableError


class FakeProtector:
    """Reversible, scope-tagged stand-in for a real protector."""

    def __init__(self) -> None:
        self.available_scopes: set[ProtectionScope] = {ProtectionScope.USER, ProtectionScope.MACHINE}
        self.protect_calls: list[tuple[bytes, ProtectionScope]] = []

    def protect(self, plain: bytes, scope: ProtectionScope) -> bytes:
        self.protect_calls.append((plain, scope))
        return scope.value.encode("ascii") + b"|" + plain[::-1]

    def unprotect(self, cipher: bytes) -> bytes:
        tag, sep, body = cipher.partition(b"|")
        try:
            scope = ProtectionScope(tag.decode("ascii"))
        except ValueError as exc:
            raise SecretUnavailableError("corrupt") from exc
        if not sep or scope not in self.available_scopes:
            raise SecretUnavailableError(f"no {scope.value} key")
        return body[::-1]


class FakeUnlocker:
    """Records calls; opens and accepts according to its configuration."""

    def __init__(self, pin: bytes = b"secret1") -> None:
        self.pin = pin
        self.missing: set[str] = set()
        self.opened: list[str] = []
        self.submitted: list[tuple[str, bytes]] = []
        self.last_buffer: bytearray | None = None

    def open(self, container_id: str) -> TokenHandle | None:
        self.opened.append(container_id)
        if container_id in self.missing:
            return None
        return TokenHandle(container_id=container_id, provider="fake")

    def set_secret(self, handle: TokenHandle, secret: bytes | bytearray) -> bool:
        if isinstance(secret, bytearray):
            self.last_buffer = secret
        self.submitted.append((handle.container_id, bytes(secret)))
        return bytes(secret) == self.pin


@pytest.fixture()
def fake_protector() -> FakeProtector:
    return FakeProtector()


@pytest.fixture()
def fake_unlocker() -> FakeUnlocker:
    return FakeUnlocker()


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the default config location at a per-test directory."""
    config_home = tmp_path / "config-home"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setenv("APPDATA", str(config_home))
    return config_home / "etoken-tool"
