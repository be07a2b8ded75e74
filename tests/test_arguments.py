"""Tests for the switch-style argument index (core/arguments.py).

Pure in-memory tests — no I/O.

Coverage:
* Token management and program-name extraction.
* Switch lookup (markers, case, first match, caching).
* Value detection, including the leading-dash rule.
* Numeric parsing with and without defaults.
* add/remove mutation and cache invalidation.
* Display rendering.
"""

from __future__ import annotations

import pytest

from etoken_tool.core.arguments import NOT_PRESENT, ArgumentIndex
from etoken_tool.exceptions import ArgumentParseError, InvalidArgumentError


# ---------------------------------------------------------------------------
# set_tokens
# ---------------------------------------------------------------------------

class TestSetTokens:
    def test_first_token_becomes_program_name(self) -> None:
        args = ArgumentIndex(["/usr/bin/etoken-tool", "list"], first_is_program_name=True)
        assert args.program_name == "/usr/bin/etoken-tool"
        assert args.tokens == ["list"]

    def test_program_name_from_host_when_not_first(self) -> None:
        args = ArgumentIndex(["list"])
        assert args.program_name
        assert args.tokens == ["list"]

    def test_none_means_empty(self) -> None:
        args = ArgumentIndex(None)
        assert len(args) == 0

    def test_empty_with_program_name_flag(self) -> None:
        args = ArgumentIndex([], first_is_program_name=True)
        assert len(args) == 0

    def test_tokens_are_copied(self) -> None:
        source = ["list", "-config", "a.cfg"]
        args = ArgumentIndex(source)
        source.append("-verbose")
        assert not args.has_switch("verbose")

    def test_reset_clears_cache(self) -> None:
        args = ArgumentIndex(["-a"])
        assert args.find_switch_position("b") == NOT_PRESENT
        args.set_tokens(["-b"])
        assert args.find_switch_position("b") == 0
        assert args.find_switch_position("a") == NOT_PRESENT

    def test_repeated_set_is_idempotent(self) -> None:
        args = ArgumentIndex()
        args.set_tokens(["x", "-y"])
        args.set_tokens(["x", "-y"])
        assert args.tokens == ["x", "-y"]
        assert args.find_switch_position("y") == 1

    def test_token_at(self) -> None:
        args = ArgumentIndex(["add", "-token", "t1"])
        assert args.token_at(0) == "add"
        with pytest.raises(IndexError):
            args.token_at(3)


# ---------------------------------------------------------------------------
# find_switch_position / has_switch / is_switch_at
# ---------------------------------------------------------------------------

class TestFindSwitchPosition:
    @pytest.mark.parametrize("token", ["-config", "/config", "-CONFIG", "/Config"])
    def test_both_markers_any_case(self, token: str) -> None:
        args = ArgumentIndex(["list", token, "a.cfg"])
        assert args.find_switch_position("config") == 1
        assert args.find_switch_position("CoNfIg") == 1

    def test_first_match_wins(self) -> None:
        args = ArgumentIndex(["-id", "a", "-id", "b"])
        assert args.find_switch_position("id") == 0

    def test_plain_value_is_not_a_switch(self) -> None:
        args = ArgumentIndex(["config"])
        assert args.find_switch_position("config") == NOT_PRESENT

    def test_absent_returns_not_present(self) -> None:
        assert ArgumentIndex(["list"]).find_switch_position("id") == -1

    def test_name_is_trimmed(self) -> None:
        args = ArgumentIndex(["-id", "x"])
        assert args.find_switch_position("  id ") == 0

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_missing_name_raises(self, name: str | None) -> None:
        with pytest.raises(InvalidArgumentError):
            ArgumentIndex(["-id"]).find_switch_position(name)  # type: ignore[arg-type]

    def test_miss_is_cached_until_mutation(self) -> None:
        args = ArgumentIndex(["list"])
        assert args.find_switch_position("id") == NOT_PRESENT
        # Direct mutation of the internal list bypasses invalidation,
        # which proves the cached miss is served.
        args._tokens.append("-id")
        assert args.find_switch_position("id") == NOT_PRESENT
        args.add_switch("other")
        assert args.find_switch_position("id") == 1

    def test_has_switch(self) -> None:
        args = ArgumentIndex(["login", "/machine"])
        assert args.has_switch("machine")
        assert not args.has_switch("id")


class TestIsSwitchAt:
    def test_switch(self) -> None:
        assert ArgumentIndex(["-Token"]).is_switch_at(0) == (True, "token")

    def test_slash_switch(self) -> None:
        assert ArgumentIndex(["/ID"]).is_switch_at(0) == (True, "id")

    def test_value(self) -> None:
        assert ArgumentIndex(["add"]).is_switch_at(0) == (False, None)

    @pytest.mark.parametrize("index", [-1, 1, 99])
    def test_out_of_range(self, index: int) -> None:
        assert ArgumentIndex(["-a"]).is_switch_at(index) == (False, None)


# ---------------------------------------------------------------------------
# get_switch_value
# ---------------------------------------------------------------------------

class TestGetSwitchValue:
    def test_value_follows_switch(self) -> None:
        args = ArgumentIndex(["add", "-token", "MyToken"])
        assert args.get_switch_value("token") == "MyToken"

    def test_value_case_preserved(self) -> None:
        args = ArgumentIndex(["-alias", "CamelCase"])
        assert args.get_switch_value("ALIAS") == "CamelCase"

    def test_last_token_has_no_value(self) -> None:
        assert ArgumentIndex(["add", "-machine"]).get_switch_value("machine") is None

    def test_dash_token_is_not_a_value(self) -> None:
        args = ArgumentIndex(["-machine", "-token", "t"])
        assert args.get_switch_value("machine") is None

    def test_negative_number_reads_as_no_value(self) -> None:
        args = ArgumentIndex(["-offset", "-5"])
        assert args.get_switch_value("offset") is None

    def test_slash_token_is_a_value(self) -> None:
        args = ArgumentIndex(["-config", "/etc/etoken.cfg"])
        assert args.get_switch_value("config") == "/etc/etoken.cfg"

    def test_absent_switch(self) -> None:
        assert ArgumentIndex(["list"]).get_switch_value("config") is None

    def test_default_when_absent(self) -> None:
        args = ArgumentIndex(["list"])
        assert args.get_switch_value("config", "default.cfg") == "default.cfg"

    def test_default_when_no_value(self) -> None:
        args = ArgumentIndex(["list", "-config"])
        assert args.get_switch_value("config", "default.cfg") == "default.cfg"

    def test_empty_value_is_returned(self) -> None:
        assert ArgumentIndex(["-alias", ""]).get_switch_value("alias") == ""


# ---------------------------------------------------------------------------
# Numeric values
# ---------------------------------------------------------------------------

class TestNumericValues:
    def test_int(self) -> None:
        assert ArgumentIndex(["-retries", "3"]).get_switch_value_as_int("retries") == 3

    def test_int_with_plus_and_spaces(self) -> None:
        assert ArgumentIndex(["-n", " +42 "]).get_switch_value_as_int("n") == 42

    def test_int_rejects_grouping(self) -> None:
        with pytest.raises(ArgumentParseError):
            ArgumentIndex(["-n", "1_000"]).get_switch_value_as_int("n")

    def test_int_malformed_without_default_raises(self) -> None:
        with pytest.raises(ArgumentParseError, match="not an integer"):
            ArgumentIndex(["-n", "abc"]).get_switch_value_as_int("n")

    def test_int_absent_without_default_raises(self) -> None:
        with pytest.raises(ArgumentParseError, match="requires"):
            ArgumentIndex([]).get_switch_value_as_int("n")

    def test_int_malformed_with_default(self) -> None:
        assert ArgumentIndex(["-n", "abc"]).get_switch_value_as_int("n", 7) == 7

    def test_int_absent_with_default(self) -> None:
        assert ArgumentIndex([]).get_switch_value_as_int("n", 7) == 7

    def test_float_uses_dot_separator(self) -> None:
        assert ArgumentIndex(["-t", "2.5"]).get_switch_value_as_float("t") == 2.5

    def test_float_exponent(self) -> None:
        assert ArgumentIndex(["-t", "1e3"]).get_switch_value_as_float("t") == 1000.0

    def test_float_comma_is_malformed(self) -> None:
        with pytest.raises(ArgumentParseError):
            ArgumentIndex(["-t", "2,5"]).get_switch_value_as_float("t")

    def test_float_malformed_with_default(self) -> None:
        assert ArgumentIndex(["-t", "2,5"]).get_switch_value_as_float("t", 1.0) == 1.0

    def test_int_rejects_non_ascii_digits(self) -> None:
        with pytest.raises(ArgumentParseError):
            ArgumentIndex(["-n", "\u0661\u0662"]).get_switch_value_as_int("n")

    def test_float_rejects_non_ascii_digits(self) -> None:
        assert ArgumentIndex(["-t", "\u0661.\u0665"]).get_switch_value_as_float("t", 1.0) == 1.0

    def test_parse_error_is_invalid_argument(self) -> None:
        assert issubclass(ArgumentParseError, InvalidArgumentError)


# ---------------------------------------------------------------------------
# add_switch / remove_switch
# ---------------------------------------------------------------------------

class TestAddSwitch:
    def test_appends_marker_and_value(self) -> None:
        args = ArgumentIndex(["login"])
        args.add_switch("id", "tok1")
        assert args.tokens == ["login", "-id", "tok1"]
        assert args.get_switch_value("id") == "tok1"

    def test_existing_marker_is_kept(self) -> None:
        args = ArgumentIndex()
        args.add_switch("/machine")
        assert args.tokens == ["/machine"]
        assert args.has_switch("machine")

    def test_readd_replaces_previous_pair(self) -> None:
        args = ArgumentIndex(["login", "-id", "old", "-verbose"])
        args.add_switch("id", "new")
        assert args.tokens == ["login", "-verbose", "-id", "new"]
        assert args.get_switch_value("id") == "new"

    def test_readd_is_idempotent(self) -> None:
        args = ArgumentIndex()
        args.add_switch("id", "x")
        args.add_switch("id", "x")
        assert args.tokens == ["-id", "x"]

    def test_readd_flag_does_not_swallow_neighbour(self) -> None:
        args = ArgumentIndex(["-machine", "-verbose"])
        args.add_switch("machine", "value")
        assert args.tokens == ["-verbose", "-machine", "value"]

    def test_without_removal_duplicates(self) -> None:
        args = ArgumentIndex(["-id", "a"])
        args.add_switch("id", "b", remove_existing=False)
        assert args.tokens == ["-id", "a", "-id", "b"]
        assert args.get_switch_value("id") == "a"

    def test_invalidates_cached_miss(self) -> None:
        args = ArgumentIndex(["list"])
        assert not args.has_switch("config")
        args.add_switch("config", "x.cfg")
        assert args.get_switch_value("config") == "x.cfg"

    def test_empty_name_raises(self) -> None:
        with pytest.raises(InvalidArgumentError):
            ArgumentIndex().add_switch("-")


class TestRemoveSwitch:
    def test_removes_switch_only(self) -> None:
        args = ArgumentIndex(["-id", "x", "list"])
        args.remove_switch("id")
        assert args.tokens == ["x", "list"]

    def test_removes_switch_and_value(self) -> None:
        args = ArgumentIndex(["-id", "x", "list"])
        args.remove_switch("id", remove_value=True)
        assert args.tokens == ["list"]

    def test_remove_value_keeps_following_switch(self) -> None:
        args = ArgumentIndex(["-machine", "-id", "x"])
        args.remove_switch("machine", remove_value=True)
        assert args.tokens == ["-id", "x"]

    def test_remove_value_at_end(self) -> None:
        args = ArgumentIndex(["list", "-verbose"])
        args.remove_switch("verbose", remove_value=True)
        assert args.tokens == ["list"]

    def test_absent_is_noop(self) -> None:
        args = ArgumentIndex(["list"])
        args.remove_switch("id", remove_value=True)
        assert args.tokens == ["list"]

    def test_cached_hit_is_invalidated(self) -> None:
        args = ArgumentIndex(["-a", "-id", "x"])
        assert args.find_switch_position("id") == 1
        args.remove_switch("id")
        assert args.find_switch_position("id") == NOT_PRESENT

    def test_positions_shift_after_removal(self) -> None:
        args = ArgumentIndex(["-a", "-b", "-c"])
        assert args.find_switch_position("c") == 2
        args.remove_switch("a")
        assert args.find_switch_position("c") == 1


# ---------------------------------------------------------------------------
# positionals / rendering
# ---------------------------------------------------------------------------

class TestPositionals:
    def test_values_of_switches_are_excluded(self) -> None:
        args = ArgumentIndex(["add", "-token", "t", "-machine", "-alias", "a"])
        assert args.positionals() == ["add"]

    def test_stray_value(self) -> None:
        args = ArgumentIndex(["login", "-id", "x", "extra"])
        assert args.positionals() == ["login", "extra"]


class TestDisplayString:
    def test_plain_tokens(self) -> None:
        assert ArgumentIndex(["add", "-token", "t1"]).to_display_string() == "add -token t1"

    def test_quotes_spaces_and_empty(self) -> None:
        args = ArgumentIndex(["add", "-alias", "my token", "-password", ""])
        assert args.to_display_string() == 'add -alias "my token" -password ""'

    def test_quotes_tabs(self) -> None:
        assert ArgumentIndex(["a\tb"]).to_display_string() == '"a\tb"'

    def test_empty_sequence(self) -> None:
        assert ArgumentIndex().to_display_string() == ""
