"""
Phrase Comparison.

Responsibilities:
- Normalize two phrases and align their tokens (greedy best match).
- Produce a phrase-level score with a length-asymmetry penalty.

Non-Responsibilities:
- No thresholds.
- No clamping; scores may drop below 0.0.

Invariant:
Given identical dictionaries and inputs, the score is always the same.

The algorithm:

1. Preparation: punctuation, synonyms and common words are handled by the
   Normalizer. We always iterate over the phrase with fewer tokens (the query).
2. Calculation: every query token is matched to its most similar token in the
   other phrase (the reference). A reference token may be reused; this is not
   an optimal assignment.
3. Error adjustment: each reference token without a query counterpart costs
   ERROR_ADJ. Without it "Testing module foo" would score almost 1.0 against
   "Testing if there's not memory leak in module bar".
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .distance import similarity
from .lexicon import Lexicon, load_lexicon
from .normalize import Normalizer

# Points removed per missing word
ERROR_ADJ = 0.15
DEFAULT_THRESHOLD = 0.60


@dataclass(frozen=True)
class PhraseScore:
    """Explainable breakdown of a phrase comparison."""

    direct: float
    adjustment: float
    query: Tuple[str, ...]
    reference: Tuple[str, ...]

    @property
    def value(self) -> float:
        return self.direct - self.adjustment


class PhraseComparator:
    def __init__(self, normalizer: Normalizer, error_adj: float = ERROR_ADJ):
        self.normalizer = normalizer
        self.error_adj = error_adj

    def score_tokens(self, tokens_a: Sequence[str], tokens_b: Sequence[str]) -> PhraseScore:
        query, reference = tuple(tokens_a), tuple(tokens_b)
        if len(query) > len(reference):
            query, reference = reference, query

        if not query:
            return PhraseScore(0.0, 0.0, query, reference)

        total = 0.0
        for word in query:
            total += max(similarity(word, other) for other in reference)

        direct = total / len(query)
        adjustment = (len(reference) - len(query)) * self.error_adj
        return PhraseScore(direct, adjustment, query, reference)

    def score(self, phrase_a: str, phrase_b: str) -> PhraseScore:
        return self.score_tokens(
            self.normalizer.normalize(phrase_a),
            self.normalizer.normalize(phrase_b),
        )

    def compare_tokens(self, tokens_a: Sequence[str], tokens_b: Sequence[str]) -> float:
        return self.score_tokens(tokens_a, tokens_b).value

    def compare(self, phrase_a: str, phrase_b: str) -> float:
        """
        Compare two phrases.

        Returns:
            Direct score minus error adjustment. 1.0 for phrases that normalize
            identically, 0.0 when either side normalizes to nothing.
        """
        return self.score(phrase_a, phrase_b).value


def compare(
    phrase_a: str,
    phrase_b: str,
    lexicon: Optional[Lexicon] = None,
    error_adj: float = ERROR_ADJ,
    synonym_match: str = "token",
) -> float:
    """
    One-off comparison using the packaged dictionaries unless a lexicon is given.

    Loads the dictionaries on every call; build a PhraseComparator when
    comparing many phrases.
    """
    normalizer = Normalizer(lexicon if lexicon is not None else load_lexicon(), synonym_match)
    return PhraseComparator(normalizer, error_adj).compare(phrase_a, phrase_b)
