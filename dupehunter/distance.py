"""
Token-level edit distance and similarity.

The Damerau-Levenshtein distance between two words is the minimum number of
insertions, deletions or substitutions of a single character, or
transpositions of two adjacent characters, needed to change one word into
the other. This is the optimal string alignment variant: a substring is
never edited more than once.
"""

from rapidfuzz.distance import OSA


def distance(a: str, b: str) -> int:
    return OSA.distance(a, b)


def similarity(a: str, b: str) -> float:
    """
    Similarity of two tokens in [0.0, 1.0].

    Two empty tokens are identical (1.0); otherwise the distance is scaled
    by the longer token's length.
    """
    if not a and not b:
        return 1.0
    return OSA.normalized_similarity(a, b)
