"""Unit tests for keyword name matching."""

from keychain_monitor.components.name_matching import (
    NameMatchRule,
    is_substantial_substring,
    match_keyword,
    normalize,
)


class TestNameMatching:
    """Test cases for the keyword matching rules."""

    def test_normalize(self):
        assert normalize("  AK-47 | Redline ") == "ak-47 | redline"
        assert normalize(None) == ""

    def test_exact(self):
        assert match_keyword("ak-47 | redline", "ak-47 | redline") is NameMatchRule.EXACT

    def test_substring_must_cover_more_than_half(self):
        assert is_substantial_substring("abcdef", "abcdefghij") is True
        assert is_substantial_substring("abcde", "abcdefghij") is False
        assert is_substantial_substring("xyz", "abcdefghij") is False

    def test_substring_rule(self):
        assert (
            match_keyword("awp | asiimov (ft)", "awp | asiimov") is NameMatchRule.SUBSTRING
        )

    def test_reverse_substring_rule(self):
        assert (
            match_keyword("awp | asiimov", "awp | asiimov (ft)")
            is NameMatchRule.REVERSE_SUBSTRING
        )

    def test_no_match(self):
        assert match_keyword("awp | asiimov", "m4a4 | howl") is None
        assert match_keyword("awp | asiimov", "") is None
        assert match_keyword("", "awp") is None
