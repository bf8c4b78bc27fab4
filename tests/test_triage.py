"""
Tests for issue triage against a fake GitHub client.
"""

import pytest
from dupehunter.config import Settings
from dupehunter.github import GitHubError
from dupehunter.lexicon import Lexicon
from dupehunter.triage import select_candidates, triage_issue


class FakeClient:
    """Stands in for GitHubClient; records every write."""

    def __init__(self, issues, fail_on=()):
        self.repo = "gitextensions/gitextensions"
        self.issues = issues
        self.fail_on = set(fail_on)
        self.calls = []

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.fail_on:
            raise GitHubError(f"{name} failed", status=403)

    def list_issues(self, since=None, state="all", per_page=100):
        self._call("list_issues", since)
        return iter(self.issues)

    def ensure_label(self, name, color=None):
        self._call("ensure_label", name, color)
        return False

    def add_labels(self, number, labels):
        self._call("add_labels", number, labels)

    def create_comment(self, number, body):
        self._call("create_comment", number, body)
        return {"id": 1}

    def names(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def settings():
    return Settings(title_prefix="[NBug]", since="2019-03-01")


@pytest.fixture
def matcher(settings):
    return settings.build_matcher(Lexicon.empty())


@pytest.fixture
def target():
    return {"number": 10, "title": "[NBug] App crashes on startup", "state": "open"}


class TestSelectCandidates:
    """Test candidate pre-filtering."""

    def test_filters_target_prs_and_prefix(self, sample_issues):
        candidates = select_candidates(sample_issues, 7, "[NBug]")
        assert [c.id for c in candidates] == [3, 4]

    def test_no_prefix(self, sample_issues):
        candidates = select_candidates(sample_issues, 7)
        assert [c.id for c in candidates] == [3, 4, 5]


class TestTriageIssue:
    """Test the triage flow."""

    def test_closed_issue_is_ignored(self, settings, matcher, target):
        client = FakeClient([])
        target["state"] = "closed"
        outcome = triage_issue(target, settings, client, matcher)
        assert outcome["status"] == "closed"
        assert client.calls == []

    def test_marks_duplicates(self, settings, matcher, target, sample_issues, quiet_logger):
        client = FakeClient(sample_issues)

        outcome = triage_issue(target, settings, client, matcher)

        assert outcome["status"] == "marked"
        assert [d["number"] for d in outcome["duplicates"]] == [3, 7]
        assert client.calls[0] == ("list_issues", "2019-03-01")
        assert ("ensure_label", "potential-duplicate", "cfd3d7") in client.calls
        assert ("add_labels", 10, ["potential-duplicate"]) in client.calls
        comment = [c for c in client.calls if c[0] == "create_comment"][0]
        assert comment[1] == 10
        assert comment[2].startswith("Potential duplicates: \n")
        assert "[![#3]" in comment[2] and "[![#7]" in comment[2]
        assert quiet_logger.metrics["issues_triaged"] == 1

    def test_no_duplicates(self, settings, matcher):
        client = FakeClient([{"number": 1, "title": "[NBug] Commit dialog is slow", "comments": 0}])
        issue = {"number": 10, "title": "[NBug] Push fails with SSH key", "state": "open"}
        outcome = triage_issue(issue, settings, client, matcher)
        assert outcome["status"] == "no_duplicates"
        assert client.names() == ["list_issues"]

    def test_threshold_false_disables_matching(self, matcher, target, sample_issues):
        settings = Settings(threshold=False)
        client = FakeClient(sample_issues)
        outcome = triage_issue(target, settings, client, matcher)
        assert outcome["status"] == "disabled"
        assert client.calls == []

    def test_label_disabled(self, matcher, target, sample_issues):
        settings = Settings(title_prefix="[NBug]", issue_label=False)
        client = FakeClient(sample_issues)
        outcome = triage_issue(target, settings, client, matcher)
        assert outcome["status"] == "marked"
        assert client.names() == ["list_issues", "create_comment"]

    def test_notifies_fixed_version(self, matcher, sample_issues):
        settings = Settings(fixed_in_versions={"[NBug] ConEmuCD was not loaded": "v3.3"})
        client = FakeClient([])
        issue = {"number": 10, "title": "[NBug] ConEmuCD was not loaded: error 5", "state": "open"}
        outcome = triage_issue(issue, settings, client, matcher)
        assert outcome["notified"] == "v3.3"
        assert client.calls[0][0] == "create_comment"
        assert "releases/tag/v3.3" in client.calls[0][2]
        assert "gitextensions/gitextensions" in client.calls[0][2]

    def test_dry_run_makes_no_writes(self, settings, matcher, target, sample_issues):
        client = FakeClient(sample_issues)
        outcome = triage_issue(target, settings, client, matcher, dry_run=True)
        assert outcome["status"] == "marked"
        assert client.names() == ["list_issues"]

    def test_label_failure_still_comments(self, settings, matcher, target, sample_issues):
        client = FakeClient(sample_issues, fail_on=["add_labels"])
        outcome = triage_issue(target, settings, client, matcher)
        assert outcome["status"] == "failed"
        assert "create_comment" in client.names()

    def test_listing_failure_propagates(self, settings, matcher, target):
        client = FakeClient([], fail_on=["list_issues"])
        with pytest.raises(GitHubError):
            triage_issue(target, settings, client, matcher)
