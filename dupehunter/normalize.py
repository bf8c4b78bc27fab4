import re
from dataclasses import dataclass
from typing import List, Pattern, Tuple

from .lexicon import Lexicon

SYNONYM_MATCH_MODES = ("substring", "token")


@dataclass(frozen=True)
class Rule:
    """A single rewrite step: every match of `pattern` becomes `replacement`."""

    pattern: Pattern[str]
    replacement: str

    def apply(self, text: str) -> str:
        # Callable replacement so backslashes in dictionary words stay literal
        return self.pattern.sub(lambda _m: self.replacement, text)


def _standalone(alternatives: str) -> str:
    return rf"(?<!\S)(?:{alternatives})(?!\S)"


def build_rules(lexicon: Lexicon, synonym_match: str = "token") -> Tuple[Rule, ...]:
    """
    Compile a lexicon into the ordered rewrite rules used by the Normalizer.

    Order: punctuation -> synonyms (one rule per group, dictionary order)
    -> exclusions.
    """
    if synonym_match not in SYNONYM_MATCH_MODES:
        raise ValueError(f"synonym_match must be one of {SYNONYM_MATCH_MODES}, got {synonym_match!r}")

    rules: List[Rule] = []

    if lexicon.punctuation:
        chars = "".join(re.escape(p) for p in lexicon.punctuation)
        rules.append(Rule(re.compile(f"[{chars}]"), " "))

    for word, variants in lexicon.synonyms.items():
        alternatives = "|".join(re.escape(v.lower()) for v in variants)
        if synonym_match == "token":
            alternatives = _standalone(alternatives)
        rules.append(Rule(re.compile(alternatives, re.IGNORECASE), word.lower()))

    if lexicon.excludes:
        alternatives = "|".join(re.escape(w.lower()) for w in lexicon.excludes)
        rules.append(Rule(re.compile(_standalone(alternatives)), ""))

    return tuple(rules)


class Normalizer:
    """
    Turns a raw phrase into comparison tokens.

    Lower-cases, strips punctuation, canonicalizes synonyms and drops
    excluded words, then splits on whitespace. Stateless after construction.
    """

    def __init__(self, lexicon: Lexicon, synonym_match: str = "token"):
        self.lexicon = lexicon
        self.synonym_match = synonym_match
        self.rules = build_rules(lexicon, synonym_match)

    def prepare(self, phrase: str) -> str:
        """Apply every rewrite rule and return the rewritten string."""
        phrase = phrase.lower()
        for rule in self.rules:
            phrase = rule.apply(phrase)
        return phrase

    def normalize(self, phrase: str) -> List[str]:
        return self.prepare(phrase).split()
