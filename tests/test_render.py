"""
Tests for comment rendering.
"""

from dupehunter.config import DEFAULT_FIXED_IN_VERSION_COMMENT, DEFAULT_REFERENCE_COMMENT
from dupehunter.matcher import MatchResult
from dupehunter.render import (
    issue_context,
    render_fixed_comment,
    render_reference_comment,
    shield_color,
    shield_markdown,
    shield_uri,
)


class TestShields:
    """Test img.shields.io badge building."""

    def test_color_by_comment_count(self):
        assert shield_color(0) == "lightgrey"
        assert shield_color(1) == "lightgrey"
        assert shield_color(2) == "green"
        assert shield_color(4) == "green"
        assert shield_color(5) == "orange"
        assert shield_color(9) == "orange"
        assert shield_color(10) == "red"

    def test_uri(self):
        uri = shield_uri(12, "Crash on start", 3, 85)
        assert uri == (
            "https://img.shields.io/badge/"
            "%2312%20Crash_on_start-similarity%2085%25%20%2F%20comments%203-green.svg"
        )

    def test_uri_escapes_badge_separators(self):
        uri = shield_uri(1, "git-lfs my_repo", 0, 70)
        assert "git--lfs_my__repo-similarity" in uri

    def test_markdown_links_issue(self):
        md = shield_markdown(12, "Crash", 0, 90)
        assert md.startswith("[![#12](https://img.shields.io/badge/")
        assert md.endswith("-lightgrey.svg)](12)")


class TestComments:
    """Test comment templates."""

    def test_reference_comment(self):
        matches = [
            MatchResult(2, "App crash", score=0.9, comments=1),
            MatchResult(5, "App crashes", score=0.75, comments=6),
        ]
        body = render_reference_comment(DEFAULT_REFERENCE_COMMENT, matches)
        assert body.startswith("Potential duplicates: \n- [![#2]")
        assert body.count("- [![#") == 2
        assert "similarity%2075%25" in body
        assert "-orange.svg)](5) \n" in body

    def test_reference_comment_custom_template(self):
        template = "Look at these:\n{{#issues}}- #{{ number }} {{ title }} ({{ accuracy }}%)\n{{/issues}}Thanks!"
        body = render_reference_comment(template, [MatchResult(3, "x", score=1.0)])
        assert body == "Look at these:\n- #3 x (100%)\nThanks!"

    def test_reference_comment_escapes_double_braces(self):
        body = render_reference_comment("{{#issues}}{{ title }}{{/issues}}", [MatchResult(3, "a < b", score=1.0)])
        assert body == "a &lt; b"

    def test_reference_comment_without_matches(self):
        body = render_reference_comment(DEFAULT_REFERENCE_COMMENT, [])
        assert body == "Potential duplicates: \n"

    def test_issue_context(self):
        context = issue_context(MatchResult(5, "App crashes", score=0.75, comments=6))
        assert context["number"] == 5
        assert context["accuracy"] == 75
        assert context["shield"] == shield_markdown(5, "App crashes", 6, 75)

    def test_fixed_comment(self):
        body = render_fixed_comment(DEFAULT_FIXED_IN_VERSION_COMMENT, "v3.3", "gitextensions/gitextensions")
        assert "[v3.3](https://github.com/gitextensions/gitextensions/releases/tag/v3.3)" in body
        assert body.startswith(":bulb:")

    def test_fixed_comment_camel_case_placeholder(self):
        assert render_fixed_comment("Fixed in {{ appVersion }}", "v3.3", "o/r") == "Fixed in v3.3"
