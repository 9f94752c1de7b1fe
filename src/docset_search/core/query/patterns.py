from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, TypeVar

T = TypeVar("T")

LIKE_ESCAPE = "\\"


def split_terms(pattern: str) -> List[str]:
    """Split a search pattern into its whitespace-separated terms.

    Empty terms are dropped, so repeated or surrounding whitespace never
    produces an empty substring filter.
    """
    if pattern is None:
        return []
    return str(pattern).split()


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so a term only ever matches itself."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def like_substring(term: str) -> str:
    """Return the bound LIKE parameter matching ``term`` anywhere in a name."""
    return f"%{escape_like(term)}%"


def docset_prefix(docset_name: str) -> str:
    return f"{docset_name.lower()} "


def has_docset_prefix(pattern: str, docset_name: str) -> bool:
    """True when the pattern starts with ``"<docset> "``, ignoring case."""
    head = str(pattern)[: len(docset_name) + 1]
    return head.lower() == docset_prefix(docset_name)


def strip_docset_prefix(pattern: str, docset_name: str) -> str:
    """Remove a leading ``"<docset> "`` from the pattern, case-insensitively.

    Examples:
        >>> strip_docset_prefix("Redis blpop", "Redis")
        'blpop'
        >>> strip_docset_prefix("redis redis", "Redis")
        'redis'
        >>> strip_docset_prefix("blpop", "Redis")
        'blpop'
    """
    if has_docset_prefix(pattern, docset_name):
        return pattern[len(docset_name) + 1 :]
    return pattern


def find_narrowing_docset(pattern: str, docset_names: Iterable[str]) -> Optional[str]:
    """Return the first docset whose name prefixes the pattern, if any."""
    for name in docset_names:
        if has_docset_prefix(pattern, name):
            return name
    return None


def narrow_by_prefix(pattern: str, items: Sequence[T], key) -> List[T]:
    """Restrict ``items`` to the one whose name prefixes the pattern.

    ``key`` maps an item to its docset name. When no name prefixes the
    pattern every item is kept, in order.
    """
    names = [key(item) for item in items]
    chosen = find_narrowing_docset(pattern, names)
    if chosen is None:
        return list(items)
    return [items[names.index(chosen)]]
