"""etoken-tool — registry of hardware-token PINs, protected at rest.

Maps token container ids (and friendly aliases) to secrets encrypted
for the current user or machine, and submits them to the token on
demand.
"""

from etoken_tool.version import __version__

__all__: list[str] = ["__version__"]
