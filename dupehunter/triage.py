"""
Issue triage: the glue between GitHub and the duplicate matcher.

Given one opened/edited issue, lists earlier issues, finds potential
duplicates and marks the issue with a label and a reference comment.
"""

from typing import Any, Dict, Iterable, List, Optional

from .config import Settings
from .github import GitHubClient, GitHubError
from .logger import get_logger
from .matcher import Candidate, DuplicateMatcher
from .render import render_fixed_comment, render_reference_comment
from .retry import is_transient_error


def select_candidates(issues: Iterable[Dict[str, Any]], target_number: int, title_prefix: str = "") -> List[Candidate]:
    """Drop the target itself, pull requests and titles outside the prefix."""
    candidates = []
    for issue in issues:
        if issue.get("number") == target_number or "pull_request" in issue:
            continue
        if not (issue.get("title") or "").startswith(title_prefix):
            continue
        candidates.append(Candidate.from_issue(issue))
    return candidates


def _fixed_version(title: str, fixed_in_versions: Dict[str, str]) -> Optional[str]:
    for prefix, version in fixed_in_versions.items():
        if title.startswith(prefix):
            return version
    return None


def _log_github_failure(message: str, error: GitHubError, **context) -> None:
    get_logger().error(message, error=str(error), status=error.status, transient=is_transient_error(error), **context)


def notify_fixed(client: GitHubClient, number: int, settings: Settings, app_version: str, dry_run: bool = False) -> bool:
    body = render_fixed_comment(settings.fixed_in_version_comment, app_version, client.repo)
    if dry_run:
        get_logger().info("Dry run: would advise fixed version", issue=number, version=app_version, body=body)
        return True
    try:
        client.create_comment(number, body)
        return True
    except GitHubError as e:
        _log_github_failure("Could not advise issue fixed in version", e, issue=number, version=app_version)
        return False


def mark_as_duplicate(client: GitHubClient, number: int, settings: Settings, matches, dry_run: bool = False) -> bool:
    """Label the issue and post the reference comment. Returns True if both succeeded."""
    log = get_logger()
    body = render_reference_comment(settings.reference_comment, matches) if settings.reference_comment else None

    if dry_run:
        log.info("Dry run: would mark as duplicate", issue=number, label=settings.issue_label, body=body)
        return True

    ok = True
    if settings.issue_label:
        try:
            client.ensure_label(settings.issue_label, settings.label_color or None)
            client.add_labels(number, [settings.issue_label])
        except GitHubError as e:
            _log_github_failure("Could not label issue as duplicate", e, issue=number)
            ok = False
    if body:
        try:
            client.create_comment(number, body)
        except GitHubError as e:
            _log_github_failure("Could not comment on duplicate issue", e, issue=number)
            ok = False
    return ok


def triage_issue(
    issue: Dict[str, Any],
    settings: Settings,
    client: GitHubClient,
    matcher: DuplicateMatcher,
    dry_run: bool = False,
) -> Dict[str, Any]:
    """
    Check one issue for potential duplicates and act on the result.

    Returns:
        {"status": closed|disabled|no_duplicates|marked|failed,
         "duplicates": [match dicts], "notified": version or None}
    """
    log = get_logger()
    number = issue["number"]
    title = issue.get("title") or ""
    outcome: Dict[str, Any] = {"status": None, "duplicates": [], "notified": None}

    if issue.get("state") == "closed":
        log.info("The issue is closed, ignore", issue=number)
        outcome["status"] = "closed"
        return outcome

    log.record_issue_triaged()

    version = _fixed_version(title, dict(settings.fixed_in_versions))
    if version and settings.fixed_in_version_comment:
        if notify_fixed(client, number, settings, version, dry_run=dry_run):
            outcome["notified"] = version

    if settings.threshold is False:
        outcome["status"] = "disabled"
        return outcome

    issues = client.list_issues(since=settings.since)
    candidates = select_candidates(issues, number, settings.title_prefix)
    matches = matcher.find_duplicates(title, candidates, threshold=settings.threshold, target_id=number)
    outcome["duplicates"] = [m.to_dict() for m in matches]

    if not matches:
        log.info("No potential duplicates", issue=number, candidates=len(candidates))
        outcome["status"] = "no_duplicates"
        return outcome

    log.info(
        "Potential duplicates found",
        issue=number,
        duplicates=[m.id for m in matches],
    )
    outcome["status"] = "marked" if mark_as_duplicate(client, number, settings, matches, dry_run) else "failed"
    return outcome
