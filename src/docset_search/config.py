"""Search configuration.

Settings are read from a YAML file with a top-level ``docset_search`` key::

    docset_search:
      docsets_root: ~/.docsets
      min_length: 3
      candidate_format: "{docset} {name}"
      common_docsets: [Python 3]
      contexts:
        go: [Go]
        redis: [Redis]

Every key is optional. ``contexts`` maps a calling context (a file type, a
project) to the docsets searched only in that context.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

# ============================================================================
# DEFAULTS
# ============================================================================

DEFAULT_CONFIG_PATH = Path("config/docsets.yaml")
DEFAULT_DOCSETS_ROOT = "~/.docsets"
# Shorter patterns would scan most of every index
DEFAULT_MIN_LENGTH = 3
DEFAULT_CANDIDATE_FORMAT = "{docset} {name}"


def _expand(p: str) -> str:
    return os.path.expandvars(os.path.expanduser(p))


@dataclass(frozen=True)
class SearchSettings:
    """Injected configuration read by the search core."""

    docsets_root: Path = field(default_factory=lambda: Path(_expand(DEFAULT_DOCSETS_ROOT)))
    min_length: int = DEFAULT_MIN_LENGTH
    candidate_format: str = DEFAULT_CANDIDATE_FORMAT
    common_docsets: List[str] = field(default_factory=list)
    contexts: Dict[str, List[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate field constraints."""
        if int(self.min_length) < 1:
            raise ValueError(f"min_length must be >= 1, got {self.min_length}")
        if not str(self.candidate_format).strip():
            raise ValueError("candidate_format must not be empty")

    def local_docsets_for(self, context: Optional[str]) -> List[str]:
        """Return the docsets activated by a calling context."""
        if not context:
            return []
        return list(self.contexts.get(context, []))

    def with_overrides(self, **overrides: Any) -> "SearchSettings":
        values = {k: v for k, v in overrides.items() if v is not None}
        if "docsets_root" in values:
            values["docsets_root"] = Path(_expand(str(values["docsets_root"])))
        return replace(self, **values)


def _name_list(raw: Any, key: str) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str) or not isinstance(raw, (list, tuple)):
        raise ValueError(f"'{key}' must be a list of docset names, got {raw!r}")
    return [str(x) for x in raw]


def parse_settings(data: Dict[str, Any]) -> SearchSettings:
    """Build settings from the ``docset_search`` mapping of a config file."""
    section = (data or {}).get("docset_search", {}) or {}
    if not isinstance(section, dict):
        raise ValueError("'docset_search' must be a mapping")

    contexts_raw = section.get("contexts", {}) or {}
    if not isinstance(contexts_raw, dict):
        raise ValueError("'contexts' must map context names to docset lists")
    contexts = {
        str(ctx): _name_list(names, f"contexts.{ctx}") for ctx, names in contexts_raw.items()
    }

    try:
        min_length = int(section.get("min_length", DEFAULT_MIN_LENGTH))
    except (TypeError, ValueError) as e:
        raise ValueError(f"'min_length' must be an integer: {e}") from e

    return SearchSettings(
        docsets_root=Path(_expand(str(section.get("docsets_root", DEFAULT_DOCSETS_ROOT)))),
        min_length=min_length,
        candidate_format=str(section.get("candidate_format", DEFAULT_CANDIDATE_FORMAT)),
        common_docsets=_name_list(section.get("common_docsets"), "common_docsets"),
        contexts=contexts,
    )


def load_settings(path: Optional[Path] = None, **overrides: Any) -> SearchSettings:
    """Load settings from YAML, then apply non-None keyword overrides.

    Args:
        path: Config file. When omitted, ``config/docsets.yaml`` is used if
            it exists and built-in defaults otherwise.
        **overrides: Field values that win over the file (e.g. from CLI flags).

    Raises:
        FileNotFoundError: If an explicit ``path`` does not exist.
        ValueError: If the file contains invalid values.
    """
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
    elif DEFAULT_CONFIG_PATH.exists():
        path = DEFAULT_CONFIG_PATH

    if path is None:
        settings = SearchSettings()
    else:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {path}")
        settings = parse_settings(data)
    return settings.with_overrides(**overrides)
