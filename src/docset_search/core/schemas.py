"""Normalized records passed between the query layer and its callers.

- IndexRow: one index entry, independent of the dialect it was read from
- Candidate: a display-ready search result tagged with its source docset
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class IndexRow:
    """A raw index row normalized across dialects.

    Attributes:
        entry_type: Token type as stored by the docset (e.g. "Function").
        entry_name: Token name that the search terms are matched against.
        relative_path: Path of the page relative to the Documents directory.
            Legacy docsets may embed a ``#fragment`` or ``<dash_entry_...>``
            markers here.
        anchor: Anchor inside the page. Only the modern dialect stores it
            separately; legacy rows always carry None.
    """

    entry_type: str
    entry_name: str
    relative_path: str
    anchor: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Candidate:
    """A search result kept together with enough context to resolve its URL."""

    display_text: str
    docset_name: str
    row: IndexRow

    def to_dict(self) -> Dict[str, Any]:
        return {
            "display_text": self.display_text,
            "docset_name": self.docset_name,
            **self.row.to_dict(),
        }


__all__ = ["IndexRow", "Candidate"]
