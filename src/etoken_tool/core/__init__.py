"""Core / service layer — argument indexing, the registry and unlock flow.

Rules
-----
* No ``print()`` calls.
* No imports from ``cli`` or ``infra``.
* External capabilities (secret protection, token access) are reached
  only through the protocols in :mod:`etoken_tool.core.protocols`.
* File I/O is confined to ``CredentialStore.load`` / ``save``.
"""

from etoken_tool.core.arguments import NOT_PRESENT, ArgumentIndex
from etoken_tool.core.credential_store import CredentialStore, resolve_config_path
from etoken_tool.core.models import CredentialRecord, ProtectionScope, TokenHandle
from etoken_tool.core.protocols import SecretProtector, TokenUnlocker
from etoken_tool.core.unlock_service import UnlockService

__all__: list[str] = [
    "NOT_PRESENT",
    "ArgumentIndex",
    "CredentialRecord",
    "CredentialStore",
    "ProtectionScope",
    "SecretProtector",
    "TokenHandle",
    "TokenUnlocker",
    "UnlockService",
    "resolve_config_path",
]
