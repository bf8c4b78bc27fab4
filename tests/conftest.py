"""
Pytest configuration and shared fixtures.
"""

import pytest
from typing import Any, Dict, List

from dupehunter.compare import PhraseComparator
from dupehunter.lexicon import Lexicon
from dupehunter.logger import get_logger, reset_logger
from dupehunter.normalize import Normalizer


@pytest.fixture(autouse=True)
def quiet_logger():
    """Fresh global logger without console or file output."""
    reset_logger()
    logger = get_logger(enable_console=False, enable_file=False)
    yield logger
    reset_logger()


@pytest.fixture
def sample_lexicon() -> Lexicon:
    """Small dictionary set for normalization tests."""
    return Lexicon(
        punctuation=[".", ",", "'", "-", "!", "["],
        synonyms={
            "crash": ["crashes", "crashed"],
            "cannot": ["can not", "unable to"],
            "settings": ["Preferences"],
        },
        excludes=["the", "a", "in", "s"],
    )


@pytest.fixture
def plain_comparator() -> PhraseComparator:
    """Comparator with no dictionaries: lower-case and split only."""
    return PhraseComparator(Normalizer(Lexicon.empty()))


@pytest.fixture
def sample_issues() -> List[Dict[str, Any]]:
    """Issue payloads as returned by the GitHub issues endpoint."""
    return [
        {"number": 7, "title": "[NBug] App crashes on startup", "comments": 3, "state": "open"},
        {"number": 3, "title": "[NBug] App crashes on startup", "comments": 12, "state": "closed"},
        {"number": 4, "title": "[NBug] Commit dialog is slow", "comments": 0, "state": "open"},
        {"number": 5, "title": "App crashes on startup", "comments": 1, "state": "open"},
        {"number": 6, "title": "[NBug] App crashes on startup", "comments": 0, "state": "open",
         "pull_request": {"url": "https://api.github.com/repos/o/r/pulls/6"}},
    ]
