from __future__ import annotations

from typing import List, NamedTuple, Tuple

from docset_search.core.enums import Dialect
from docset_search.core.errors import SchemaUnrecognized

from .patterns import LIKE_ESCAPE, like_substring, split_terms


MAX_RESULTS = 1000


class Query(NamedTuple):
    sql: str
    params: Tuple[str, ...]


_LEGACY_SELECT = "SELECT t.type, t.name, t.path FROM searchIndex t"
_LEGACY_NAME = "t.name"

_MODERN_SELECT = (
    "SELECT ty.ZTYPENAME, t.ZTOKENNAME, f.ZPATH, m.ZANCHOR "
    "FROM ZTOKEN t, ZTOKENTYPE ty, ZFILEPATH f, ZTOKENMETAINFORMATION m"
)
_MODERN_JOIN = [
    "ty.Z_PK = t.ZTOKENTYPE",
    "f.Z_PK = m.ZFILE",
    "m.ZTOKEN = t.Z_PK",
]
_MODERN_NAME = "t.ZTOKENNAME"


def _term_filters(name_column: str, terms: List[str]) -> List[str]:
    return [f"{name_column} LIKE ? ESCAPE '{LIKE_ESCAPE}'" for _ in terms]


def _compose(select: str, name_column: str, conditions: List[str]) -> str:
    return (
        f"{select} WHERE {' AND '.join(conditions)} "
        f"ORDER BY LENGTH({name_column}), LOWER({name_column}) "
        f"LIMIT {MAX_RESULTS}"
    )


def build_query(dialect: Dialect, pattern: str) -> Query:
    """Build the dialect-specific search query for a pattern.

    Every whitespace-separated term must occur as a substring of the token
    name (in any order). Rows are ordered shortest name first, then by
    case-insensitive name, and capped at ``MAX_RESULTS``.

    Raises:
        ValueError: If the pattern contains no terms.
        SchemaUnrecognized: If ``dialect`` is not a known dialect.
    """
    terms = split_terms(pattern)
    if not terms:
        raise ValueError("Search pattern contains no terms")
    params = tuple(like_substring(t) for t in terms)

    if dialect == Dialect.LEGACY_INDEX:
        sql = _compose(_LEGACY_SELECT, _LEGACY_NAME, _term_filters(_LEGACY_NAME, terms))
    elif dialect == Dialect.MODERN_INDEX:
        sql = _compose(
            _MODERN_SELECT,
            _MODERN_NAME,
            _MODERN_JOIN + _term_filters(_MODERN_NAME, terms),
        )
    else:
        raise SchemaUnrecognized(None, None, detail=f"unknown dialect {dialect!r}")
    return Query(sql=sql, params=params)
