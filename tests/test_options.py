"""Tests for the issue flag parser."""

from __future__ import annotations

import pytest

from jirabot.errors import OptionError
from jirabot.options import parse_options, tokenize


class TestTokenize:
    def test_splits_around_short_flags(self) -> None:
        assert tokenize("foo bar -c infra -a alice desc text") == [
            "foo bar",
            "-c",
            "infra",
            "-a",
            "alice desc text",
        ]

    def test_leading_flag_stays_attached(self) -> None:
        assert tokenize("-s new summary -a bob") == ["-s new summary", "-a", "bob"]

    def test_issue_keys_are_not_flags(self) -> None:
        assert tokenize("blocks ABC-12 and OPS-3") == ["blocks ABC-12 and OPS-3"]

    def test_empty(self) -> None:
        assert tokenize("") == []
        assert tokenize("   ") == []


class TestParseOptions:
    def test_flags_bind_to_adjacent_values(self) -> None:
        parsed = parse_options("foo bar -c infra -a alice desc text")
        assert parsed.arguments == ("foo bar",)
        assert parsed.text == "foo bar"
        assert dict(parsed.options) == {
            "component": "infra",
            "assignee": "alice desc text",
        }

    def test_values_are_trimmed(self) -> None:
        parsed = parse_options("fix   -c    billing    -d   slow page   ")
        assert parsed.get("component") == "billing"
        assert parsed.get("desc") == "slow page"

    def test_quotes_are_stripped(self) -> None:
        parsed = parse_options('fix it -d "broken totals" -a \'bob\'')
        assert parsed.get("desc") == "broken totals"
        assert parsed.get("assignee") == "bob"

    def test_quoted_summary(self) -> None:
        parsed = parse_options('"fix the thing" -c infra')
        assert parsed.text == "fix the thing"

    def test_flag_at_start_with_inline_value(self) -> None:
        parsed = parse_options("-s new summary -r 2h")
        assert parsed.arguments == ()
        assert dict(parsed.options) == {"summary": "new summary", "remaining": "2h"}

    def test_all_flags(self) -> None:
        parsed = parse_options(
            "thing -j ABC -c api -s sum -a al -f 1.2 -d desc -t 3h -r 1h -p ABC-1"
        )
        assert dict(parsed.options) == {
            "project_key": "ABC",
            "component": "api",
            "summary": "sum",
            "assignee": "al",
            "fix_version": "1.2",
            "desc": "desc",
            "time": "3h",
            "remaining": "1h",
            "parent": "ABC-1",
        }

    def test_long_flags(self) -> None:
        parsed = parse_options("fix it --component billing --fix-version=2.0")
        assert parsed.text == "fix it"
        assert parsed.get("component") == "billing"
        assert parsed.get("fix_version") == "2.0"

    def test_unset_flags_are_absent(self) -> None:
        parsed = parse_options("just a summary")
        assert "component" not in parsed.options
        assert parsed.get("component") is None

    def test_unknown_short_flag_rejected(self) -> None:
        with pytest.raises(OptionError, match="Unrecognized option: -x"):
            parse_options("fix -c infra -x foo")

    def test_unknown_long_flag_rejected(self) -> None:
        with pytest.raises(OptionError, match="Unrecognized option: --nope"):
            parse_options("fix --nope 1")

    def test_flag_without_value(self) -> None:
        with pytest.raises(OptionError, match="Missing value for option -c"):
            parse_options("fix it -c")

    def test_dash_letter_inside_value_is_a_known_limitation(self) -> None:
        # The value is cut at " -x", which then reads as an unknown flag.
        with pytest.raises(OptionError):
            parse_options("fix -d pass the -x switch")

    def test_parsing_is_repeatable(self) -> None:
        text = "fix bug -c infra -a alice"
        assert parse_options(text) == parse_options(text)

    def test_options_are_read_only(self) -> None:
        parsed = parse_options("fix -c infra")
        with pytest.raises(TypeError):
            parsed.options["component"] = "other"  # type: ignore[index]
