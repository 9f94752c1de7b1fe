"""Exceptions raised by the docset search core.

Every error carries the docset name and the operation that failed so the
calling layer (CLI, MCP server) can present a diagnostic without parsing
messages.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional


class DocsetSearchError(Exception):
    """Base class for all docset search errors."""

    def __init__(self, message: str, *, docset_name: Optional[str] = None, operation: str = "") -> None:
        super().__init__(message)
        self.docset_name = docset_name
        self.operation = operation


class DocsetNotFound(DocsetSearchError):
    """No installed docset directory resolves for the requested name."""

    def __init__(self, docset_name: str, *, docsets_root: Optional[Path] = None, operation: str = "locate") -> None:
        where = f" under {docsets_root}" if docsets_root is not None else ""
        super().__init__(
            f"Docset not found: {docset_name}{where}",
            docset_name=docset_name,
            operation=operation,
        )
        self.docsets_root = docsets_root


class DocsetRemovedMidSession(DocsetNotFound):
    """A registered docset disappeared from disk after it was opened."""

    def __init__(self, docset_name: str, *, docsets_root: Optional[Path] = None) -> None:
        super().__init__(docset_name, docsets_root=docsets_root, operation="search")
        self.args = (
            f"Docset removed since it was registered: {docset_name}. "
            f"Reset the connections and search again.",
        )


class SchemaUnrecognized(DocsetSearchError):
    """The index database matches neither known dialect."""

    def __init__(
        self,
        docset_name: Optional[str],
        db_path: Optional[Path],
        tables: Iterable[str] = (),
        *,
        detail: str = "",
    ) -> None:
        self.tables = sorted(tables)
        shown = detail or (", ".join(self.tables) if self.tables else "no tables")
        super().__init__(
            f"Unrecognized index schema for {docset_name or db_path or 'index'}: {shown}",
            docset_name=docset_name,
            operation="detect",
        )
        self.db_path = db_path


class QueryExecutionFailure(DocsetSearchError):
    """The database engine failed while opening or querying an index."""

    def __init__(self, docset_name: Optional[str], operation: str, cause: BaseException) -> None:
        super().__init__(
            f"{operation} failed for docset {docset_name}: {cause}",
            docset_name=docset_name,
            operation=operation,
        )
        self.cause = cause


__all__ = [
    "DocsetSearchError",
    "DocsetNotFound",
    "DocsetRemovedMidSession",
    "SchemaUnrecognized",
    "QueryExecutionFailure",
]
