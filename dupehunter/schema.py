from datetime import date
from typing import Any, Dict, List

from chevron.tokenizer import ChevronError, tokenize

from .normalize import SYNONYM_MATCH_MODES

# camelCase keys accepted in potential-duplicates.yml
KEY_ALIASES = {
    "issueLabel": "issue_label",
    "labelColor": "label_color",
    "errorAdj": "error_adj",
    "referenceComment": "reference_comment",
    "fixedInVersionComment": "fixed_in_version_comment",
    "fixedInVersions": "fixed_in_versions",
    "titlePrefix": "title_prefix",
    "synonymMatch": "synonym_match",
}

STR_OR_FALSE_FIELDS = ["issue_label", "label_color"]
# Mustache tags that look a name up in the render context
TEMPLATE_TAGS = {"variable", "no escape", "section", "inverted section"}
TEMPLATE_FIELDS = {
    "reference_comment": {"issues", "number", "title", "comments", "accuracy", "shield"},
    "fixed_in_version_comment": {"app_version", "appVersion", "repo"},
}
KNOWN_FIELDS = {
    "issue_label",
    "label_color",
    "threshold",
    "error_adj",
    "reference_comment",
    "fixed_in_version_comment",
    "fixed_in_versions",
    "title_prefix",
    "since",
    "synonym_match",
    "dictionaries",
    "workers",
}


def canonical_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {KEY_ALIASES.get(k, k): v for k, v in data.items()}


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _template_errors(name: str, template: str, allowed: set) -> List[str]:
    try:
        tags = [(kind, key.strip()) for kind, key in tokenize(template)]
    except ChevronError as e:
        return [f"Field '{name}' is not a valid template: {e}"]
    unknown = sorted({
        key for kind, key in tags
        if kind in TEMPLATE_TAGS and key != "." and key.split(".")[0] not in allowed
    })
    errors = []
    if unknown:
        errors.append(f"Field '{name}' uses unknown placeholders: {', '.join(unknown)}")
    if any(kind == "partial" for kind, _ in tags):
        errors.append(f"Field '{name}' cannot use partials")
    return errors


def validate_config(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    Keys may use the camelCase spelling.
    """
    if not isinstance(data, dict):
        return ["Configuration must be a mapping"]

    data = canonical_keys(data)
    errors: List[str] = []

    for f in sorted(set(data) - KNOWN_FIELDS):
        errors.append(f"Unknown field: {f}")

    for f in STR_OR_FALSE_FIELDS:
        if f in data and not (isinstance(data[f], str) or data[f] is False):
            errors.append(f"'{f}' must be a string or false")

    if "threshold" in data:
        v = data["threshold"]
        if v is not False and not (_is_number(v) and 0 <= v <= 1):
            errors.append("'threshold' must be a float in [0, 1] or false")

    if "error_adj" in data:
        v = data["error_adj"]
        if not (_is_number(v) and v >= 0):
            errors.append("'error_adj' must be a non-negative number")

    for f, allowed in TEMPLATE_FIELDS.items():
        if f not in data or data[f] is False:
            continue
        if not isinstance(data[f], str):
            errors.append(f"'{f}' must be a string or false")
        else:
            errors.extend(_template_errors(f, data[f], allowed))

    if "fixed_in_versions" in data:
        v = data["fixed_in_versions"]
        if not isinstance(v, dict) or not all(
            isinstance(k, str) and k and isinstance(ver, str) and ver for k, ver in v.items()
        ):
            errors.append("'fixed_in_versions' must map title prefixes to version strings")

    if "title_prefix" in data and not isinstance(data["title_prefix"], str):
        errors.append("'title_prefix' must be a string")

    if data.get("since") is not None:
        v = data["since"]
        # YAML parses unquoted ISO dates into date objects
        if not isinstance(v, date):
            try:
                date.fromisoformat(str(v)[:10])
            except ValueError:
                errors.append("'since' must be an ISO date (YYYY-MM-DD)")

    if "synonym_match" in data and data["synonym_match"] not in SYNONYM_MATCH_MODES:
        errors.append(f"'synonym_match' must be one of: {', '.join(SYNONYM_MATCH_MODES)}")

    if data.get("dictionaries") is not None and not isinstance(data["dictionaries"], str):
        errors.append("'dictionaries' must be a path string")

    if "workers" in data:
        v = data["workers"]
        if not (isinstance(v, int) and not isinstance(v, bool) and v >= 1):
            errors.append("'workers' must be a positive integer")

    return errors
