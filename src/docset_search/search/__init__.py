"""Search orchestration and result handling.

Public API:
    SearchEngine: Run a pattern against the active docsets
    SearchOutcome: Candidates plus per-docset failures of one search
    format_candidate: Render a candidate's display text
    resolve_url: Map an index path to a browsable URL
"""

from __future__ import annotations

from .engine import SearchEngine, SearchOutcome
from .results import candidate_url, format_candidate, resolve_url, short_file_name

__all__ = [
    "SearchEngine",
    "SearchOutcome",
    "candidate_url",
    "format_candidate",
    "resolve_url",
    "short_file_name",
]
