from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Optional, Set

from docset_search.core.enums import Dialect
from docset_search.core.errors import QueryExecutionFailure, SchemaUnrecognized


logger = logging.getLogger(__name__)

LEGACY_TABLE = "searchIndex"
MODERN_TABLES = frozenset({"ZTOKEN", "ZTOKENTYPE", "ZFILEPATH", "ZTOKENMETAINFORMATION"})


def list_tables(connection: sqlite3.Connection) -> Set[str]:
    cur = connection.execute("SELECT name FROM sqlite_master WHERE type='table'")
    return {str(row[0]) for row in cur.fetchall()}


def detect_dialect(
    connection: sqlite3.Connection,
    *,
    docset_name: Optional[str] = None,
    db_path: Optional[Path] = None,
) -> Dialect:
    """Classify an index database by inspecting its table catalogue.

    A ``searchIndex`` table means the legacy flat index. Otherwise the
    Core Data tables of the modern schema must all be present.

    Raises:
        SchemaUnrecognized: If the database matches neither dialect.
        QueryExecutionFailure: If the catalogue cannot be read.
    """
    try:
        tables = list_tables(connection)
    except sqlite3.Error as e:
        raise QueryExecutionFailure(docset_name, "detect", e) from e

    if LEGACY_TABLE in tables:
        dialect = Dialect.LEGACY_INDEX
    elif MODERN_TABLES <= tables:
        dialect = Dialect.MODERN_INDEX
    else:
        raise SchemaUnrecognized(docset_name, db_path, tables)

    logger.debug("Detected %s index for %s", dialect.value, docset_name or db_path)
    return dialect
