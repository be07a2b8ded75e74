"""CLI console and logging helpers with optional Rich support.

This module intentionally avoids module-level imports of optional UI
dependencies so bootstrap paths (``-help``, ``-version``) remain
functional even when Rich is not installed.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from etoken_tool.exceptions import EnvironmentError

LOGGER_NAME: str = "etoken_tool"


def _load_rich_console_class() -> type[Any]:
	"""Return ``rich.console.Console`` class or raise ``EnvironmentError``."""
	try:
		from rich.console import Console
	except ModuleNotFoundError as exc:
		raise EnvironmentError(
			"rich is not installed. Install with: pip install rich",
		) from exc
	return Console


def get_rich_console(stderr: bool = True) -> Any:
	"""Create a Rich console instance (stderr unless told otherwise)."""
	console_class = _load_rich_console_class()
	return console_class(stderr=stderr)


class _ConsoleProxy:
	"""Minimal ``print``-compatible proxy with Rich fallback."""

	def print(self, *objects: object) -> None:
		"""Render with Rich when available, else plain stderr print."""
		try:
			rich_console = get_rich_console()
		except EnvironmentError:
			print(*objects, file=sys.stderr)
			return
		rich_console.print(*objects)


console = _ConsoleProxy()


def configure_logging(verbose: bool = False) -> None:
	"""Route ``etoken_tool`` log records to stderr.

	Uses ``rich.logging.RichHandler`` when Rich is installed, a plain
	``StreamHandler`` otherwise.  Level is DEBUG with *verbose*, WARNING
	without.  Calling it again replaces the previous handler.
	"""
	handler: logging.Handler
	try:
		from rich.logging import RichHandler
	except ModuleNotFoundError:
		handler = logging.StreamHandler(sys.stderr)
		handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
	else:
		handler = RichHandler(console=get_rich_console(), show_path=False, show_time=verbose)

	logger = logging.getLogger(LOGGER_NAME)
	logger.handlers[:] = [handler]
	logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
