"""
Lexical dictionaries used by the normalizer.

Three read-only tables drive normalization: punctuation characters,
synonym groups (canonical word -> variants) and exclusion words. They are
loaded once and passed explicitly to the Normalizer.
"""

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

DICTIONARY_DIR = Path(__file__).resolve().parent / "dictionaries"
DICTIONARY_FILES = {
    "punctuation": "punctuation.yml",
    "synonyms": "synonyms.yml",
    "excludes": "excluded.yml",
}


class LexiconError(ValueError):
    """Raised when a dictionary document is malformed."""

    def __init__(self, errors: List[str], source: Optional[Path] = None):
        self.errors = errors
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(f"Invalid dictionary{where}: " + "; ".join(errors))


@dataclass(frozen=True)
class Lexicon:
    """Immutable dictionary set, safe to share across threads."""

    punctuation: Tuple[str, ...] = ()
    synonyms: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    excludes: Tuple[str, ...] = ()

    def __post_init__(self):
        frozen = {k: tuple(v) for k, v in dict(self.synonyms).items()}
        object.__setattr__(self, "punctuation", tuple(self.punctuation))
        object.__setattr__(self, "synonyms", MappingProxyType(frozen))
        object.__setattr__(self, "excludes", tuple(self.excludes))

    @classmethod
    def empty(cls) -> "Lexicon":
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: Optional[Path] = None) -> "Lexicon":
        errors = validate_lexicon(data)
        if errors:
            raise LexiconError(errors, source)
        return cls(
            punctuation=data.get("punctuation") or (),
            synonyms=data.get("synonyms") or {},
            excludes=data.get("excludes") or (),
        )


def _is_word(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def validate_lexicon(data: Any) -> List[str]:
    """
    Returns a list of problems with a dictionary document. Empty list means valid.
    """
    if not isinstance(data, dict):
        return ["Dictionary document must be a mapping"]

    errors: List[str] = []

    punctuation = data.get("punctuation") or []
    if not isinstance(punctuation, list):
        errors.append("'punctuation' must be a list of single characters")
    else:
        for p in punctuation:
            if not isinstance(p, str) or len(p) != 1:
                errors.append(f"Punctuation entry {p!r} must be a single character")

    synonyms = data.get("synonyms") or {}
    if not isinstance(synonyms, dict):
        errors.append("'synonyms' must map canonical words to lists of variants")
    else:
        for word, variants in synonyms.items():
            if not _is_word(word):
                errors.append(f"Synonym key {word!r} must be a non-empty string")
            if not isinstance(variants, list) or not variants:
                errors.append(f"Synonym group '{word}' must be a non-empty list")
                continue
            for v in variants:
                if not _is_word(v):
                    errors.append(f"Synonym variant {v!r} of '{word}' must be a non-empty string")

    excludes = data.get("excludes") or []
    if not isinstance(excludes, list):
        errors.append("'excludes' must be a list of words")
    else:
        for w in excludes:
            if not _is_word(w):
                errors.append(f"Excluded word {w!r} must be a non-empty string")

    return errors


def _read_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        try:
            return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise LexiconError([f"YAML parse error: {e}"], path) from e


def load_lexicon(path: Optional[Path] = None) -> Lexicon:
    """
    Load a dictionary set.

    Args:
        path: YAML/JSON file with 'punctuation', 'synonyms' and 'excludes'
              keys. When omitted, the dictionaries shipped with the package
              are used.

    Returns:
        Lexicon instance

    Raises:
        FileNotFoundError: If the file does not exist
        LexiconError: If the document is malformed
    """
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Dictionary file not found: {path}")
        return Lexicon.from_dict(_read_yaml(path) or {}, source=path)

    data = {key: _read_yaml(DICTIONARY_DIR / name) for key, name in DICTIONARY_FILES.items()}
    return Lexicon.from_dict(data, source=DICTIONARY_DIR)
