from __future__ import annotations

import sqlite3
from typing import List, Optional, Sequence

from docset_search.core.enums import Dialect
from docset_search.core.errors import QueryExecutionFailure
from docset_search.core.schemas import IndexRow

from .plan import Query, build_query


def _text(value) -> str:
    return "" if value is None else str(value)


def normalize_row(dialect: Dialect, raw: Sequence) -> IndexRow:
    """Map a raw result tuple onto an IndexRow.

    Legacy rows are ``(type, name, path)``; modern rows add the anchor as a
    fourth column. Empty anchors are treated as absent.
    """
    anchor: Optional[str] = None
    if dialect == Dialect.MODERN_INDEX and len(raw) > 3 and raw[3]:
        anchor = str(raw[3])
    return IndexRow(
        entry_type=_text(raw[0]),
        entry_name=_text(raw[1]),
        relative_path=_text(raw[2]),
        anchor=anchor,
    )


def run_query(
    connection: sqlite3.Connection,
    query: Query,
    dialect: Dialect,
    *,
    docset_name: Optional[str] = None,
) -> List[IndexRow]:
    """Execute a built query and return normalized rows.

    Database errors are re-raised as QueryExecutionFailure carrying the
    docset name.
    """
    try:
        rows = connection.execute(query.sql, query.params).fetchall()
    except sqlite3.Error as e:
        raise QueryExecutionFailure(docset_name, "query", e) from e
    return [normalize_row(dialect, r) for r in rows]


def scan_docset(
    connection: sqlite3.Connection,
    dialect: Dialect,
    pattern: str,
    *,
    docset_name: Optional[str] = None,
) -> List[IndexRow]:
    """Build and run the search query for one docset connection."""
    return run_query(connection, build_query(dialect, pattern), dialect, docset_name=docset_name)
