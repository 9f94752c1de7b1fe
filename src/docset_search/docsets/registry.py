"""Connection registry for active docsets.

The registry owns one read-only SQLite connection per docset name. Entries
are created on demand from two name lists:

- the common tier, built only while the registry is empty
- the local (per-context) tier, extended on every call

Nothing is evicted individually: ``reset()`` closes every handle at once and
the next search re-creates whatever it needs. The registry is not
thread-safe; callers must serialise ``ensure_*`` and ``reset``.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional
from urllib.parse import quote

from docset_search.core.enums import Dialect, RegistryTier
from docset_search.core.errors import DocsetSearchError, QueryExecutionFailure
from docset_search.core.query.patterns import narrow_by_prefix
from docset_search.core.utils import get_docset_paths

from .locator import DocsetLocator
from .schema import detect_dialect


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocsetDescriptor:
    """An installed docset whose dialect has been detected."""

    name: str
    root_path: Path
    index_db_path: Path
    dialect: Dialect


@dataclass
class RegistryEntry:
    """A registered docset and its open connection."""

    descriptor: DocsetDescriptor
    handle: sqlite3.Connection
    tier: RegistryTier

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def db_path(self) -> Path:
        return self.descriptor.index_db_path

    @property
    def dialect(self) -> Dialect:
        return self.descriptor.dialect


def connect_readonly(db_path: Path) -> sqlite3.Connection:
    """Open an index database in read-only URI mode."""
    uri = f"file:{quote(Path(db_path).as_posix(), safe='/:')}?mode=ro"
    return sqlite3.connect(uri, uri=True)


def _merge_names(*lists: Optional[Iterable[str]]) -> List[str]:
    seen: Dict[str, None] = {}
    for names in lists:
        for name in names or ():
            if name:
                seen.setdefault(str(name), None)
    return list(seen)


class ConnectionRegistry:
    """Own the open index connections of the active docsets."""

    def __init__(self, locator: DocsetLocator) -> None:
        self.locator = locator
        self._entries: Dict[str, RegistryEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __enter__(self) -> "ConnectionRegistry":
        return self

    def __exit__(self, *exc) -> None:
        self.reset()

    def get(self, name: str) -> Optional[RegistryEntry]:
        return self._entries.get(name)

    def names(self) -> List[str]:
        return list(self._entries)

    def entries(self) -> List[RegistryEntry]:
        return list(self._entries.values())

    def _open(self, name: str, tier: RegistryTier) -> RegistryEntry:
        root_path = self.locator.locate(name)
        db_path, _ = get_docset_paths(root_path)
        try:
            handle = connect_readonly(db_path)
        except sqlite3.Error as e:
            raise QueryExecutionFailure(name, "open", e) from e
        try:
            dialect = detect_dialect(handle, docset_name=name, db_path=db_path)
        except DocsetSearchError:
            handle.close()
            raise
        logger.debug("Opened %s (%s) from %s", name, dialect.value, db_path)
        descriptor = DocsetDescriptor(
            name=name, root_path=root_path, index_db_path=db_path, dialect=dialect
        )
        return RegistryEntry(descriptor=descriptor, handle=handle, tier=tier)

    def _register(self, names: Iterable[str], tier: RegistryTier) -> Dict[str, DocsetSearchError]:
        failures: Dict[str, DocsetSearchError] = {}
        for name in _merge_names(names):
            if name in self._entries:
                continue
            try:
                self._entries[name] = self._open(name, tier)
            except DocsetSearchError as e:
                logger.warning("Skipping docset %s: %s", name, e)
                failures[name] = e
        return failures

    def ensure_common(self, names: Iterable[str]) -> Dict[str, DocsetSearchError]:
        """Register the common docsets if the registry is empty.

        Once any docset is registered this is a no-op until ``reset()``. A
        batch whose every name failed leaves the registry empty, so the next
        call tries again.

        Returns:
            Mapping of docset name to the error that prevented registering
            it. Failed names do not stop the rest of the batch.
        """
        if self._entries:
            return {}
        return self._register(names, RegistryTier.COMMON)

    def ensure_buffer_local(self, names: Iterable[str]) -> Dict[str, DocsetSearchError]:
        """Register any of ``names`` not yet present. Never removes entries."""
        return self._register(names, RegistryTier.LOCAL)

    def reset(self) -> None:
        """Close every connection and forget every entry."""
        for entry in self._entries.values():
            try:
                entry.handle.close()
            except sqlite3.Error as e:
                logger.debug("Error closing %s: %s", entry.name, e)
        if self._entries:
            logger.debug("Dropped %d docset connection(s)", len(self._entries))
        self._entries.clear()

    def filtered_for(
        self,
        pattern: str,
        common_names: Optional[Iterable[str]],
        local_names: Optional[Iterable[str]],
    ) -> List[RegistryEntry]:
        """Return the registered entries a search for ``pattern`` should use.

        The active set is ``local_names`` followed by ``common_names``
        (duplicates and unregistered names dropped). If the pattern starts
        with one of those docset names followed by a space, only that
        docset is returned.
        """
        active = [
            self._entries[name]
            for name in _merge_names(local_names, common_names)
            if name in self._entries
        ]
        return narrow_by_prefix(pattern, active, key=lambda e: e.name)
