"""
Duplicate Matching.

Responsibilities:
- Score a target title against a batch of candidates.
- Keep candidates at or above the threshold.
- Return matches ordered by candidate id.

Non-Responsibilities:
- No candidate fetching or pre-filtering (title prefix, recency).
- No rendering or GitHub side effects.

Invariant:
The output for a given snapshot of inputs never depends on input order or
on the number of worker threads.
"""

import concurrent.futures
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence

from .compare import DEFAULT_THRESHOLD, PhraseComparator
from .logger import get_logger


@dataclass(frozen=True)
class Candidate:
    """A previously seen title supplied by the caller."""

    id: Hashable
    title: str
    comments: int = 0
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_issue(cls, issue: Dict[str, Any]) -> "Candidate":
        """Build a candidate from a GitHub issue payload."""
        return cls(
            id=issue["number"],
            title=issue.get("title") or "",
            comments=issue.get("comments") or 0,
            metadata={k: issue[k] for k in ("html_url", "state", "updated_at") if k in issue},
        )


@dataclass(frozen=True)
class MatchResult:
    id: Hashable
    title: str
    score: float
    comments: int = 0
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def accuracy(self) -> int:
        """Score as a whole percentage, truncated and clamped to [0, 100]."""
        return max(0, min(100, int(self.score * 100)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.id,
            "title": self.title,
            "comments": self.comments,
            "accuracy": self.accuracy,
            "score": self.score,
            **dict(self.metadata),
        }


class DuplicateMatcher:
    def __init__(self, comparator: PhraseComparator, workers: int = 1):
        self.comparator = comparator
        self.workers = max(1, workers)

    def _evaluate(self, candidate: Candidate, target_tokens: Sequence[str], threshold: float) -> Optional[MatchResult]:
        tokens = self.comparator.normalizer.normalize(candidate.title)
        score = self.comparator.compare_tokens(tokens, target_tokens)
        if score >= threshold:
            return MatchResult(
                id=candidate.id,
                title=candidate.title,
                score=score,
                comments=candidate.comments,
                metadata=candidate.metadata,
            )
        return None

    def find_duplicates(
        self,
        target_title: str,
        candidates: Iterable[Candidate],
        threshold: float = DEFAULT_THRESHOLD,
        target_id: Optional[Hashable] = None,
        cancel: Optional[threading.Event] = None,
    ) -> List[MatchResult]:
        """
        Find candidates whose titles look like duplicates of the target.

        Args:
            target_title: Title being checked
            candidates: Pre-filtered candidates to compare against
            threshold: Inclusive minimum score in [0, 1]
            target_id: Id of the target's own record; never matched
            cancel: Event checked once per candidate; when set, work stops and
                    the matches found so far are returned

        Returns:
            Matches sorted ascending by candidate id
        """
        log = get_logger()
        started = time.perf_counter()
        target_tokens = self.comparator.normalizer.normalize(target_title)
        pending = [c for c in candidates if target_id is None or c.id != target_id]

        results: List[MatchResult] = []
        compared = 0

        if self.workers == 1:
            for candidate in pending:
                if cancel is not None and cancel.is_set():
                    break
                compared += 1
                match = self._evaluate(candidate, target_tokens, threshold)
                if match is not None:
                    results.append(match)
        else:
            def evaluate(candidate: Candidate):
                # Workers re-check the event so queued candidates are skipped
                if cancel is not None and cancel.is_set():
                    return False, None
                return True, self._evaluate(candidate, target_tokens, threshold)

            with concurrent.futures.ThreadPoolExecutor(max_workers=self.workers) as executor:
                futures = []
                for candidate in pending:
                    if cancel is not None and cancel.is_set():
                        break
                    futures.append(executor.submit(evaluate, candidate))
                if cancel is not None and cancel.is_set():
                    for future in futures:
                        future.cancel()
                for future in futures:
                    if future.cancelled():
                        continue
                    ran, match = future.result()
                    if not ran:
                        continue
                    compared += 1
                    if match is not None:
                        results.append(match)

        results.sort(key=lambda m: m.id)

        if cancel is not None and cancel.is_set():
            log.warning(
                "Duplicate search cancelled",
                compared=compared,
                candidates=len(pending),
                matches=len(results),
            )

        log.record_comparisons(scanned=len(pending), compared=compared, found=len(results))
        log.debug(
            "Duplicate search finished",
            target=target_title,
            compared=compared,
            matches=len(results),
            threshold=threshold,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return results


def find_duplicates(
    target_title: str,
    candidates: Iterable[Candidate],
    comparator: PhraseComparator,
    threshold: float = DEFAULT_THRESHOLD,
    target_id: Optional[Hashable] = None,
    workers: int = 1,
) -> List[MatchResult]:
    return DuplicateMatcher(comparator, workers=workers).find_duplicates(
        target_title, candidates, threshold=threshold, target_id=target_id
    )
