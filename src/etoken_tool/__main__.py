"""Allow ``python -m etoken_tool`` invocation.

Delegates to the CLI error-boundary entry point so that
``python -m etoken_tool`` behaves identically to the ``etoken-tool``
console script.
"""

from __future__ import annotations

from etoken_tool.cli.app import cli

if __name__ == "__main__":
    cli()
