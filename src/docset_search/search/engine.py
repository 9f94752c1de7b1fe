from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from docset_search.config import SearchSettings
from docset_search.core.errors import DocsetRemovedMidSession, DocsetSearchError
from docset_search.core.query.patterns import split_terms, strip_docset_prefix
from docset_search.core.query.scan import scan_docset
from docset_search.core.schemas import Candidate
from docset_search.docsets.registry import ConnectionRegistry, RegistryEntry

from .results import candidate_url, make_candidate


logger = logging.getLogger(__name__)


@dataclass
class SearchOutcome:
    """Candidates of one search plus the docsets that failed during it.

    Attributes:
        candidates: Results of every docset that succeeded, in docset order.
        failures: Docset name -> error, for registration or query failures.
        searched: Names of the docsets the pattern was run against.
    """

    candidates: List[Candidate] = field(default_factory=list)
    failures: Dict[str, DocsetSearchError] = field(default_factory=dict)
    searched: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class SearchEngine:
    """Run a pattern against the active docsets and collect candidates."""

    def __init__(self, registry: ConnectionRegistry, settings: SearchSettings) -> None:
        self.registry = registry
        self.settings = settings

    def _search_entry(self, entry: RegistryEntry, pattern: str) -> List[Candidate]:
        if not entry.descriptor.root_path.is_dir():
            raise DocsetRemovedMidSession(entry.name, docsets_root=self.registry.locator.docsets_root)
        effective = strip_docset_prefix(pattern, entry.name)
        if not split_terms(effective):
            return []
        rows = scan_docset(entry.handle, entry.dialect, effective, docset_name=entry.name)
        template = self.settings.candidate_format
        return [make_candidate(entry.name, row, template) for row in rows]

    def run_search(
        self,
        pattern: str,
        local_names: Iterable[str] = (),
        common_names: Optional[Iterable[str]] = None,
    ) -> SearchOutcome:
        """Search the active docsets, keeping per-docset failures.

        The active set is ``local_names`` plus ``common_names`` (defaulting
        to the configured common docsets). A pattern shorter than the
        configured minimum returns an empty outcome without opening any
        connection.
        """
        outcome = SearchOutcome()
        if pattern is None or len(pattern) < self.settings.min_length:
            return outcome
        if not split_terms(pattern):
            return outcome

        local = list(local_names or ())
        common = list(self.settings.common_docsets if common_names is None else common_names)

        outcome.failures.update(self.registry.ensure_common(common))
        outcome.failures.update(self.registry.ensure_buffer_local(local))

        for entry in self.registry.filtered_for(pattern, common, local):
            outcome.searched.append(entry.name)
            try:
                outcome.candidates.extend(self._search_entry(entry, pattern))
            except DocsetSearchError as e:
                logger.warning("Search failed for docset %s: %s", entry.name, e)
                outcome.failures[entry.name] = e

        logger.debug(
            "Pattern %r: %d candidate(s) from %s",
            pattern,
            len(outcome.candidates),
            ", ".join(outcome.searched) or "no docsets",
        )
        return outcome

    def search(
        self,
        pattern: str,
        local_names: Iterable[str] = (),
        common_names: Optional[Iterable[str]] = None,
    ) -> List[Candidate]:
        """Return the candidates for ``pattern``; failures are only logged."""
        return self.run_search(pattern, local_names, common_names).candidates

    def resolve(self, candidate: Candidate) -> str:
        """Resolve a candidate to its document URL."""
        return candidate_url(self.registry.locator, candidate)

    def reset(self) -> None:
        self.registry.reset()
