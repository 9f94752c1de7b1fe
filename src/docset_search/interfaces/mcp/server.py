"""
Minimal MCP server exposing docset search tools.

Tools:
 - list_docsets
 - search_docs
 - resolve_doc_url
 - reset_connections
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Dict, List, Optional

from docset_search.config import SearchSettings, load_settings
from docset_search.core.errors import DocsetSearchError
from docset_search.docsets.locator import DocsetLocator
from docset_search.docsets.registry import ConnectionRegistry
from docset_search.search.engine import SearchEngine
from docset_search.search.results import candidate_url, resolve_url

try:
    from mcp.server.fastmcp import FastMCP
except Exception as exc:
    raise RuntimeError(
        "The 'mcp' package is required for the MCP server. Install with: pip install mcp"
    ) from exc


# Global configuration
_ENGINE: SearchEngine | None = None
_SERVER = FastMCP("docset-search-tools")

# Configure logging for MCP server
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr)  # MCP uses stdout for protocol
    ],
)
logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50


def configure(settings: Optional[SearchSettings] = None) -> SearchEngine:
    """Create the process-wide engine, closing any previous one."""
    global _ENGINE
    if _ENGINE is not None:
        _ENGINE.reset()
    settings = settings or load_settings()
    _ENGINE = SearchEngine(ConnectionRegistry(DocsetLocator(settings.docsets_root)), settings)
    return _ENGINE


def _engine() -> SearchEngine:
    if _ENGINE is None:
        return configure()
    return _ENGINE


@_SERVER.tool("list_docsets")
async def list_docsets() -> Dict[str, Any]:
    """Return installed docsets, the configured common/context docsets and
    the open connections with their tier (common or local)."""
    try:
        engine = _engine()
        settings = engine.settings
        installed = engine.registry.locator.installed_docsets()
        return {
            "docsets_root": str(settings.docsets_root),
            "installed": installed,
            "common": list(settings.common_docsets),
            "contexts": {k: list(v) for k, v in settings.contexts.items()},
            "registered": [
                {"name": e.name, "tier": e.tier.value, "dialect": e.dialect.value}
                for e in engine.registry.entries()
            ],
        }
    except Exception as e:
        logger.error("Error in list_docsets: %s", e)
        return {"error": str(e), "installed": []}


@_SERVER.tool("search_docs")
async def search_docs(
    pattern: str,
    docsets: Optional[List[str]] = None,
    context: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
) -> Dict[str, Any]:
    """Search docset indexes for entries whose name contains every term.

    Prefix the pattern with a docset name (e.g. "redis blpop") to search
    only that docset.
    """
    try:
        engine = _engine()
        local = list(docsets or []) or engine.settings.local_docsets_for(context)
        outcome = engine.run_search(pattern, local)
        results = []
        for c in outcome.candidates[: max(0, int(limit))]:
            record = c.to_dict()
            try:
                record["url"] = candidate_url(engine.registry.locator, c)
            except DocsetSearchError as e:
                record["url"] = None
                record["error"] = str(e)
            results.append(record)
        return {
            "pattern": pattern,
            "searched": outcome.searched,
            "total": len(outcome.candidates),
            "results": results,
            "failures": {name: str(err) for name, err in outcome.failures.items()},
        }
    except Exception as e:
        logger.error("Error in search_docs: %s", e)
        return {"error": str(e), "results": []}


@_SERVER.tool("resolve_doc_url")
async def resolve_doc_url(docset: str, path: str, anchor: Optional[str] = None) -> Dict[str, Any]:
    """Resolve an index path of a docset to a browsable URL."""
    try:
        engine = _engine()
        return {"url": resolve_url(engine.registry.locator, docset, path, anchor)}
    except DocsetSearchError as e:
        return {"error": str(e), "docset": e.docset_name, "operation": e.operation}


@_SERVER.tool("reset_connections")
async def reset_connections() -> Dict[str, Any]:
    """Close all docset connections; the next search reopens them."""
    engine = _engine()
    dropped = len(engine.registry)
    engine.reset()
    return {"dropped": dropped}


# Transport functions
def run(settings: Optional[SearchSettings] = None) -> None:
    """Run MCP server over stdio."""
    engine = configure(settings)
    logger.info("Starting MCP server with docsets root: %s", engine.settings.docsets_root)
    asyncio.run(_SERVER.run_stdio_async())


async def _run_http(host: str, port: int) -> None:
    """Start HTTP server with explicit uvicorn configuration."""
    try:
        import uvicorn
    except ImportError:
        raise RuntimeError("uvicorn is required for HTTP mode: pip install uvicorn")

    app = _SERVER.streamable_http_app()
    config = uvicorn.Config(
        app,
        host=host,
        port=int(port),
        log_level="info",
    )
    server = uvicorn.Server(config)
    await server.serve()


def run_http(
    settings: Optional[SearchSettings] = None, *, host: str = "127.0.0.1", port: int = 8765
) -> None:
    """Run MCP server over HTTP."""
    engine = configure(settings)
    logger.info("Starting HTTP MCP server on %s:%d", host, port)
    logger.info("Docsets root: %s", engine.settings.docsets_root)
    asyncio.run(_run_http(host, port))
