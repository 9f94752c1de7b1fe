"""Docset Search Tools: query engine for locally installed Dash docsets.

The core locates docset bundles, keeps one read-only connection per active
docset, speaks both index schemas (the flat ``searchIndex`` table and the
Core Data ``ZTOKEN`` tables) and maps results to document URLs. The CLI and
MCP server under ``interfaces`` are thin layers over it.
"""

__all__ = [
    "__version__",
]

__version__ = "0.1.0"
