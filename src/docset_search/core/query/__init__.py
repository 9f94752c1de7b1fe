"""Core query engine public API.

Exposes the functions used by the registry, search engine, CLI and MCP
layers. This package centralizes pattern handling, dialect-specific query
building and query execution against docset index databases.
"""

from .patterns import split_terms, strip_docset_prefix, find_narrowing_docset, narrow_by_prefix
from .plan import MAX_RESULTS, Query, build_query
from .scan import normalize_row, run_query, scan_docset

__all__ = [
    "split_terms",
    "strip_docset_prefix",
    "find_narrowing_docset",
    "narrow_by_prefix",
    "MAX_RESULTS",
    "Query",
    "build_query",
    "normalize_row",
    "run_query",
    "scan_docset",
]
