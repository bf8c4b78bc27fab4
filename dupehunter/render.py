"""Markdown rendering for duplicate reference comments."""

from typing import Any, Dict, Iterable
from urllib.parse import quote

import chevron

from .matcher import MatchResult

SHIELDS_BASE = "https://img.shields.io/badge"

# Same character set JavaScript's encodeURIComponent leaves alone
_URI_SAFE = "-_.!~*'()"


def shield_color(comments: int) -> str:
    """Badge color by discussion size: busier issues stand out."""
    if comments < 2:
        return "lightgrey"
    if comments < 5:
        return "green"
    if comments < 10:
        return "orange"
    return "red"


def _badge_text(text: str) -> str:
    # shields.io reads "-" as a separator and "_" as a space
    return text.replace("-", "--").replace("_", "__").replace(" ", "_")


def shield_uri(number: int, title: str, comments: int, accuracy: int) -> str:
    label = quote(f"#{number} {_badge_text(title)}", safe=_URI_SAFE)
    message = quote(f"similarity {accuracy}% / comments {comments}", safe=_URI_SAFE)
    return f"{SHIELDS_BASE}/{label}-{message}-{shield_color(comments)}.svg"


def shield_markdown(number: int, title: str, comments: int, accuracy: int) -> str:
    url = shield_uri(number, title, comments, accuracy)
    return f"[![#{number}]({url})]({number})"


def issue_context(match: MatchResult) -> Dict[str, Any]:
    """Values a reference comment template can use inside {{#issues}}."""
    return {
        "number": match.id,
        "title": match.title,
        "comments": match.comments,
        "accuracy": match.accuracy,
        "shield": shield_markdown(match.id, match.title, match.comments, match.accuracy),
    }


def render_reference_comment(template: str, matches: Iterable[MatchResult]) -> str:
    """Render the mustache template listing potential duplicates."""
    return chevron.render(template, {"issues": [issue_context(m) for m in matches]})


def render_fixed_comment(template: str, app_version: str, repo: str) -> str:
    # appVersion keeps templates written for the camelCase config working
    return chevron.render(template, {"app_version": app_version, "appVersion": app_version, "repo": repo})
