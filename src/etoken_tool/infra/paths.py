"""Infrastructure: platform locations for the registry and key material.

Rules
-----
* Pure path computation — nothing is created here.
* Environment variables are read at call time so tests can override them.
"""

from __future__ import annotations

import os
import platform
from pathlib import Path

APP_DIR_NAME: str = "etoken-tool"
CONFIG_FILE_NAME: str = "etoken-tool.cfg"


def default_config_dir() -> Path:
    """Return the per-user configuration directory for etoken-tool.

    * Windows: ``%APPDATA%\\etoken-tool``
    * Elsewhere: ``$XDG_CONFIG_HOME/etoken-tool`` or ``~/.config/etoken-tool``
    """
    if platform.system().lower() == "windows":
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
    else:
        xdg = os.environ.get("XDG_CONFIG_HOME")
        base = Path(xdg) if xdg else Path.home() / ".config"
    return base / APP_DIR_NAME


def default_config_path() -> Path:
    """Return the default registry file path."""
    return default_config_dir() / CONFIG_FILE_NAME
