"""Switch-style command-line index.

:class:`ArgumentIndex` interprets a flat token list without a formal
grammar.  A token starting with ``-`` or ``/`` is a *switch*; the token
right after it is the switch's *value* unless that token starts with
``-`` itself or the switch is the last token.

The value rule is lexical, not arity-aware: a genuine value such as
``-5`` reads as "no value".  This is long-standing behaviour that
callers rely on and must not be changed here.

Guarantees
----------
* No I/O, no ``print()``.
* Switch names compare case-insensitively; values keep their case.
* The switch-position cache is either empty or exact — every mutation
  clears it and lookups repopulate it lazily.
"""

from __future__ import annotations

import re
import sys
from collections.abc import Iterable

from etoken_tool.exceptions import ArgumentParseError, InvalidArgumentError

NOT_PRESENT: int = -1
"""Position reported (and cached) for a switch that does not occur."""

_SWITCH_MARKERS: tuple[str, ...] = ("-", "/")
_VALUE_BLOCKER: str = "-"

# Locale-independent number syntax; no digit grouping, no underscores.
_INT_PATTERN = re.compile(r"\s*[+-]?\d+\s*", re.ASCII)
_FLOAT_PATTERN = re.compile(
    r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?\s*"
    r"|\s*[+-]?(?:inf|infinity|nan)\s*",
    re.IGNORECASE | re.ASCII,
)

_MISSING = object()


class ArgumentIndex:
    """Indexed view over command tokens with cached switch lookups.

    Parameters
    ----------
    tokens:
        Initial token list; ``None`` means empty.
    first_is_program_name:
        Treat the first token as the program name (``sys.argv`` style)
        and remove it from the list.
    """

    def __init__(
        self,
        tokens: Iterable[str] | None = None,
        first_is_program_name: bool = False,
    ) -> None:
        self._tokens: list[str] = []
        self._positions: dict[str, int] = {}
        self.program_name: str = ""
        self.set_tokens(tokens, first_is_program_name)

    # ------------------------------------------------------------------
    # Sequence management
    # ------------------------------------------------------------------

    def set_tokens(
        self,
        tokens: Iterable[str] | None,
        first_is_program_name: bool = False,
    ) -> None:
        """Replace the token list and drop every cached position."""
        self._tokens = list(tokens) if tokens is not None else []
        self._positions.clear()
        if first_is_program_name and self._tokens:
            self.program_name = self._tokens.pop(0)
        else:
            self.program_name = sys.argv[0] if sys.argv and sys.argv[0] else "etoken-tool"

    def __len__(self) -> int:
        return len(self._tokens)

    def __repr__(self) -> str:
        return f"ArgumentIndex({self._tokens!r})"

    @property
    def tokens(self) -> list[str]:
        """A copy of the current token list."""
        return list(self._tokens)

    def token_at(self, index: int) -> str:
        """Return the raw token at *index* (``IndexError`` when out of range)."""
        return self._tokens[index]

    def positionals(self) -> list[str]:
        """Tokens that are neither switches nor the value of a switch."""
        result: list[str] = []
        previous_was_switch = False
        for token in self._tokens:
            if token.startswith(_SWITCH_MARKERS):
                previous_was_switch = True
                continue
            if not previous_was_switch:
                result.append(token)
            previous_was_switch = False
        return result

    # ------------------------------------------------------------------
    # Switch lookup
    # ------------------------------------------------------------------

    def find_switch_position(self, name: str) -> int:
        """Return the index of the first ``-name`` / ``/name`` token.

        Returns :data:`NOT_PRESENT` when the switch does not occur.  Both
        hits and misses are cached until the next mutation.

        Raises
        ------
        InvalidArgumentError
            If *name* is ``None``, empty or blank.
        """
        key = self._normalize_name(name)
        cached = self._positions.get(key)
        if cached is not None:
            return cached

        position = NOT_PRESENT
        for index, token in enumerate(self._tokens):
            if token.startswith(_SWITCH_MARKERS) and token[1:].lower() == key:
                position = index
                break
        self._positions[key] = position
        return position

    def is_switch_at(self, index: int) -> tuple[bool, str | None]:
        """Classify the token at *index* without touching the cache.

        Returns ``(True, lowered_name)`` for a switch, ``(False, None)``
        for a value or an out-of-range index.
        """
        if 0 <= index < len(self._tokens):
            token = self._tokens[index]
            if token.startswith(_SWITCH_MARKERS):
                return True, token[1:].lower()
        return False, None

    def has_switch(self, name: str) -> bool:
        return self.find_switch_position(name) >= 0

    def get_switch_value(self, name: str, default: str | None = None) -> str | None:
        """Return the token following switch *name*, or *default*.

        There is no value when the switch is absent, is the last token,
        or is followed by a token starting with ``-``.
        """
        position = self.find_switch_position(name)
        if position < 0 or position == len(self._tokens) - 1:
            return default
        value = self._tokens[position + 1]
        if value.startswith(_VALUE_BLOCKER):
            return default
        return value

    def get_switch_value_as_int(self, name: str, default: object = _MISSING) -> int:
        """Parse the value of *name* as an integer.

        Raises
        ------
        ArgumentParseError
            When the value is absent or malformed and no *default* is given.
        """
        raw = self.get_switch_value(name)
        if raw is not None and _INT_PATTERN.fullmatch(raw):
            return int(raw)
        return self._parse_fallback(name, raw, default, "an integer")  # type: ignore[return-value]

    def get_switch_value_as_float(self, name: str, default: object = _MISSING) -> float:
        """Parse the value of *name* as a float (``.`` decimal separator).

        Raises
        ------
        ArgumentParseError
            When the value is absent or malformed and no *default* is given.
        """
        raw = self.get_switch_value(name)
        if raw is not None and _FLOAT_PATTERN.fullmatch(raw):
            return float(raw)
        return self._parse_fallback(name, raw, default, "a number")  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_switch(
        self,
        name: str,
        value: str | None = None,
        remove_existing: bool = True,
    ) -> None:
        """Append ``-name`` (and *value*, when given) to the token list.

        With *remove_existing*, an earlier occurrence of the switch is
        removed first (together with its value if this call carries one),
        so re-adding never creates duplicates.
        """
        bare = self._strip_marker(name)
        if not bare:
            raise InvalidArgumentError("Switch name must not be empty.")
        marked = name if name.startswith(_SWITCH_MARKERS) else f"-{name}"

        if remove_existing:
            self.remove_switch(bare, remove_value=value is not None)

        self._tokens.append(marked)
        if value is not None:
            self._tokens.append(value)
        self._positions.clear()

    def remove_switch(self, name: str, remove_value: bool = False) -> None:
        """Remove switch *name*; with *remove_value*, also its value.

        A following token is only treated as the value when it does not
        start with ``-``, so a neighbouring switch is never removed.
        Removing an absent switch is a no-op.
        """
        position = self.find_switch_position(self._strip_marker(name))
        if position >= 0:
            del self._tokens[position]
            if (
                remove_value
                and position < len(self._tokens)
                and not self._tokens[position].startswith(_VALUE_BLOCKER)
            ):
                del self._tokens[position]
        self._positions.clear()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def to_display_string(self) -> str:
        """Render the tokens as one string, quoting empty or spaced tokens."""
        rendered = [
            f'"{token}"' if not token or any(ch.isspace() for ch in token) else token
            for token in self._tokens
        ]
        return " ".join(rendered)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _normalize_name(name: str | None) -> str:
        if name is None or not name.strip():
            raise InvalidArgumentError("A switch name is required.")
        return name.strip().lower()

    @staticmethod
    def _strip_marker(name: str) -> str:
        if name is None:
            raise InvalidArgumentError("A switch name is required.")
        return name[1:] if name.startswith(_SWITCH_MARKERS) else name

    @staticmethod
    def _parse_fallback(name: str, raw: str | None, default: object, kind: str) -> object:
        if default is not _MISSING:
            return default
        if raw is None:
            raise ArgumentParseError(f"Switch '-{name}' requires {kind} value.")
        raise ArgumentParseError(
            f"Value '{raw}' of switch '-{name}' is not {kind}.",
            hint="Use digits with '.' as decimal separator.",
        )
