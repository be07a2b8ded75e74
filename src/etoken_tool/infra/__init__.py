"""Infrastructure layer — external system integration.

This layer wraps all interaction with ``cryptography``, ``pkcs11-tool``
and the operating system.  Every raw third-party exception must be
caught here and re-raised as an
:class:`~etoken_tool.exceptions.EtokenToolError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from etoken_tool.infra.fernet_protector import FernetSecretProtector, read_machine_id
from etoken_tool.infra.paths import default_config_dir, default_config_path
from etoken_tool.infra.pkcs11_unlocker import (
    Pkcs11ToolStatus,
    Pkcs11ToolUnlocker,
    detect_pkcs11_tool,
    require_pkcs11_tool,
)

__all__: list[str] = [
    "FernetSecretProtector",
    "Pkcs11ToolStatus",
    "Pkcs11ToolUnlocker",
    "default_config_dir",
    "default_config_path",
    "detect_pkcs11_tool",
    "read_machine_id",
    "require_pkcs11_tool",
]
