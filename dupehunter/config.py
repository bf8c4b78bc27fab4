"""
Configuration loading.

Settings come from a YAML file (by default the repository's
.github/potential-duplicates.yml). Any key left out keeps its default, and
`false` disables the corresponding action.
"""

from dataclasses import dataclass, field, fields
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from .compare import DEFAULT_THRESHOLD, ERROR_ADJ, PhraseComparator
from .lexicon import Lexicon, load_lexicon
from .matcher import DuplicateMatcher
from .normalize import Normalizer
from .schema import canonical_keys, validate_config

CONFIG_NAME = ".github/potential-duplicates.yml"

DEFAULT_REFERENCE_COMMENT = (
    "Potential duplicates: \n"
    "{{#issues}}"
    "- {{{ shield }}} \n"
    "{{/issues}}"
)
DEFAULT_FIXED_IN_VERSION_COMMENT = (
    ":bulb: The issue has been fixed in "
    "[{{ app_version }}](https://github.com/{{ repo }}/releases/tag/{{ app_version }}). "
    "Please update your version."
)


class ConfigError(ValueError):
    """Raised when a configuration file fails validation."""

    def __init__(self, errors: List[str], source: Optional[Path] = None):
        self.errors = errors
        self.source = source
        where = f" ({source})" if source else ""
        super().__init__(f"Invalid config{where}: " + "; ".join(errors))


@dataclass(frozen=True)
class Settings:
    issue_label: Union[str, bool] = "potential-duplicate"
    label_color: Union[str, bool] = "cfd3d7"
    threshold: Union[float, bool] = DEFAULT_THRESHOLD
    error_adj: float = ERROR_ADJ
    reference_comment: Union[str, bool] = DEFAULT_REFERENCE_COMMENT
    fixed_in_version_comment: Union[str, bool] = DEFAULT_FIXED_IN_VERSION_COMMENT
    fixed_in_versions: Mapping[str, str] = field(default_factory=dict)
    title_prefix: str = ""
    since: Optional[str] = None
    synonym_match: str = "token"
    dictionaries: Optional[str] = None
    workers: int = 1

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], source: Optional[Path] = None) -> "Settings":
        data = data or {}
        errors = validate_config(data)
        if errors:
            raise ConfigError(errors, source)

        values = canonical_keys(data)
        since = values.get("since")
        if isinstance(since, date):
            values["since"] = since.isoformat()
        elif since is not None:
            values["since"] = str(since)
        if _is_int(values.get("threshold")):
            values["threshold"] = float(values["threshold"])
        if values.get("dictionaries") is not None and source is not None:
            # Relative dictionary paths resolve against the config file
            values["dictionaries"] = str((source.parent / values["dictionaries"]).resolve())

        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in known})

    def load_lexicon(self) -> Lexicon:
        return load_lexicon(Path(self.dictionaries) if self.dictionaries else None)

    def build_comparator(self, lexicon: Optional[Lexicon] = None) -> PhraseComparator:
        lexicon = lexicon if lexicon is not None else self.load_lexicon()
        return PhraseComparator(Normalizer(lexicon, self.synonym_match), error_adj=self.error_adj)

    def build_matcher(self, lexicon: Optional[Lexicon] = None) -> DuplicateMatcher:
        return DuplicateMatcher(self.build_comparator(lexicon), workers=self.workers)


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Load settings from a YAML file.

    Args:
        path: Config file (default: .github/potential-duplicates.yml)

    Returns:
        Settings; defaults when the file does not exist

    Raises:
        ConfigError: On YAML errors or invalid values
    """
    path = Path(path) if path is not None else Path(CONFIG_NAME)
    if not path.exists():
        return Settings()

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError([f"YAML parse error: {e}"], path) from e

    return Settings.from_dict(data, source=path)
