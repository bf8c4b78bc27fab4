import argparse
import json
import os
from pathlib import Path
from typing import Any, Dict, List

import yaml

from . import __version__
from .config import CONFIG_NAME, ConfigError, load_settings
from .distance import distance, similarity
from .env import load_env
from .github import GitHubClient, GitHubError
from .lexicon import LexiconError
from .logger import get_logger
from .matcher import Candidate
from .schema import validate_config
from .triage import triage_issue


def _settings(args: argparse.Namespace):
    try:
        return load_settings(Path(args.config))
    except (ConfigError, LexiconError) as e:
        raise SystemExit(str(e))


def _comparator(args: argparse.Namespace):
    settings = _settings(args)
    try:
        return settings, settings.build_comparator()
    except (LexiconError, FileNotFoundError) as e:
        raise SystemExit(str(e))


def load_candidates(path: Path) -> List[Candidate]:
    """Read candidates from a JSON list of {number|id, title, comments?, ...}."""
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError("Candidate file must contain a JSON list")
    candidates = []
    for i, item in enumerate(data):
        ident = item.get("number", item.get("id"))
        if ident is None or not isinstance(item.get("title"), str):
            raise ValueError(f"Candidate #{i} needs an id/number and a title")
        extra = {k: v for k, v in item.items() if k not in ("number", "id", "title", "comments")}
        candidates.append(Candidate(ident, item["title"], item.get("comments") or 0, extra))
    return candidates


def cmd_normalize(args: argparse.Namespace) -> None:
    _, comparator = _comparator(args)
    tokens = comparator.normalizer.normalize(args.text)
    print(" ".join(tokens) if tokens else "(no tokens)")


def cmd_distance(args: argparse.Namespace) -> None:
    print(f"Distance: {distance(args.a, args.b)}")
    print(f"Similarity: {similarity(args.a, args.b):.3f}")


def cmd_compare(args: argparse.Namespace) -> None:
    _, comparator = _comparator(args)
    score = comparator.score(args.a, args.b)
    print(f"Query: {' '.join(score.query)}")
    print(f"Reference: {' '.join(score.reference)}")
    print(f"Direct score: {score.direct:.3f}")
    print(f"Error adjustment: -{score.adjustment:.3f}")
    print(f"Score: {score.value:.3f}")


def cmd_check(args: argparse.Namespace) -> None:
    settings = _settings(args)
    input_path = Path(args.candidates)
    if not input_path.exists():
        raise SystemExit(f"Candidate file not found: {input_path}")
    try:
        candidates = load_candidates(input_path)
    except (ValueError, AttributeError) as e:
        raise SystemExit(f"Invalid candidate file: {e}")

    threshold = args.threshold if args.threshold is not None else settings.threshold
    if threshold is False:
        raise SystemExit("Matching is disabled (threshold: false). Pass --threshold to override.")

    try:
        matcher = settings.build_matcher()
    except (LexiconError, FileNotFoundError) as e:
        raise SystemExit(str(e))
    if args.prefix:
        candidates = [c for c in candidates if c.title.startswith(args.prefix)]
    matches = matcher.find_duplicates(args.title, candidates, threshold=threshold, target_id=args.exclude)

    if args.json:
        print(json.dumps([m.to_dict() for m in matches], indent=2, ensure_ascii=False))
        return
    if not matches:
        print("No potential duplicates.")
        return
    print(f"Found {len(matches)} potential duplicates:\n")
    for m in matches:
        print(f"#{m.id} {m.accuracy}% {m.title}")


def cmd_triage(args: argparse.Namespace) -> None:
    settings = _settings(args)
    try:
        matcher = settings.build_matcher()
    except (LexiconError, FileNotFoundError) as e:
        raise SystemExit(str(e))

    client = GitHubClient(args.repo, token=args.token)
    log = get_logger()
    try:
        issue = client.get_issue(args.issue)
        outcome = triage_issue(issue, settings, client, matcher, dry_run=args.dry_run)
    except GitHubError as e:
        log.critical("Something went wrong!", repo=args.repo, issue=args.issue, error=str(e))
        raise SystemExit(1)

    print(f"Issue: #{args.issue}")
    print(f"Status: {outcome['status']}")
    if outcome["notified"]:
        print(f"Advised fixed in: {outcome['notified']}")
    for d in outcome["duplicates"]:
        print(f" - #{d['number']} {d['accuracy']}% {d['title']}")
    log.log_metrics_summary()


def cmd_validate_config(args: argparse.Namespace) -> None:
    path = Path(args.config)
    if not path.exists():
        raise SystemExit(f"Config file not found: {path}")
    try:
        data: Dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise SystemExit(f"Invalid YAML: {e}")
    errors = validate_config(data)
    if errors:
        print("Invalid:")
        for e in errors:
            print(f" - {e}")
        raise SystemExit(2)
    print("Valid")


def main():
    load_env()
    parser = argparse.ArgumentParser(prog="dupehunter", description="Detect potential duplicate issue titles")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--log-level", default=os.getenv("DUPEHUNTER_LOG_LEVEL", "INFO"), help="Log level (default: INFO)")

    subparsers = parser.add_subparsers(dest="command")

    def add_config(p):
        p.add_argument("--config", default=CONFIG_NAME, help=f"Path to YAML config (default: {CONFIG_NAME})")

    nrm = subparsers.add_parser("normalize", help="Show the tokens a title normalizes to")
    nrm.add_argument("text", help="Title to normalize")
    add_config(nrm)
    nrm.set_defaults(func=cmd_normalize)

    dst = subparsers.add_parser("distance", help="Damerau-Levenshtein distance between two words")
    dst.add_argument("a")
    dst.add_argument("b")
    dst.set_defaults(func=cmd_distance)

    cmp_ = subparsers.add_parser("compare", help="Score two titles")
    cmp_.add_argument("a")
    cmp_.add_argument("b")
    add_config(cmp_)
    cmp_.set_defaults(func=cmd_compare)

    chk = subparsers.add_parser("check", help="Find potential duplicates of a title in a JSON candidate file")
    chk.add_argument("--title", required=True, help="Title to check")
    chk.add_argument("--candidates", required=True, help="JSON list of {number, title, comments}")
    chk.add_argument("--threshold", type=float, help="Override the configured threshold")
    chk.add_argument("--prefix", help="Only compare candidates whose title starts with this")
    chk.add_argument("--exclude", type=int, help="Candidate number of the title itself")
    chk.add_argument("--json", action="store_true", help="Print matches as JSON")
    add_config(chk)
    chk.set_defaults(func=cmd_check)

    tri = subparsers.add_parser("triage", help="Check a GitHub issue and mark potential duplicates")
    tri.add_argument("--repo", required=True, help="Repository as owner/name")
    tri.add_argument("--issue", type=int, required=True, help="Issue number")
    tri.add_argument("--token", help="GitHub token (or set GITHUB_TOKEN)")
    tri.add_argument("--dry-run", action="store_true", help="Log actions instead of labeling/commenting")
    add_config(tri)
    tri.set_defaults(func=cmd_triage)

    val = subparsers.add_parser("validate-config", help="Validate a potential-duplicates.yml file")
    add_config(val)
    val.set_defaults(func=cmd_validate_config)

    args = parser.parse_args()

    if args.version:
        print(__version__)
        return

    get_logger().set_level(args.log_level)

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
