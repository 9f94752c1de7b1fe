import argparse
import importlib
import json
import logging
import sqlite3
from pathlib import Path
from typing import List, Optional, Tuple

import colorlog
import yaml

from docset_search.config import SearchSettings, load_settings
from docset_search.core.errors import DocsetNotFound, DocsetSearchError
from docset_search.docsets.locator import DocsetLocator
from docset_search.docsets.registry import ConnectionRegistry, connect_readonly
from docset_search.docsets.schema import detect_dialect
from docset_search.search.engine import SearchEngine
from docset_search.search.results import candidate_url, resolve_url

try:
    # Prefer package-defined version
    from docset_search import __version__ as _PACKAGE_VERSION
except ImportError:  # pragma: no cover - defensive fallback
    _PACKAGE_VERSION = None  # type: ignore[assignment]
    try:
        # Fallback to installed package metadata
        from importlib.metadata import version as _pkg_version, PackageNotFoundError

        _PACKAGE_VERSION = _pkg_version("docset-search-tools")  # type: ignore[assignment]
    except PackageNotFoundError:
        _PACKAGE_VERSION = "unknown"  # type: ignore[assignment]


def setup_logging(
    verbose: bool = False, warnings_only: bool = False, errors_only: bool = False
) -> None:
    logger = logging.getLogger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
    log_format = (
        "%(asctime)s:%(levelname)s:%(name)s in %(filename)s:%(funcName)s:%(lineno)d: %(message)s"
    )
    log_colors = {
        "DEBUG": "cyan",
        "INFO": "green",
        "WARNING": "yellow",
        "ERROR": "red",
        "CRITICAL": "bold_red",
    }
    stream_handler = colorlog.StreamHandler()
    formatter = colorlog.ColoredFormatter(f"%(log_color)s{log_format}", log_colors=log_colors)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    if errors_only:
        logger.setLevel(logging.ERROR)
    elif warnings_only:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def _non_negative_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {n}")
    return n


def _load_settings(args: argparse.Namespace) -> Optional[SearchSettings]:
    config_path = getattr(args, "config", None)
    try:
        return load_settings(
            Path(config_path) if config_path else None,
            docsets_root=getattr(args, "docsets_root", None),
        )
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        logging.error("Invalid configuration: %s", e)
        return None


def _build_engine(args: argparse.Namespace) -> Tuple[Optional[SearchSettings], Optional[SearchEngine]]:
    settings = _load_settings(args)
    if settings is None:
        return None, None
    if not settings.docsets_root.is_dir():
        logging.error("Docsets root not found or not a directory: %s", settings.docsets_root)
        return settings, None
    registry = ConnectionRegistry(DocsetLocator(settings.docsets_root))
    return settings, SearchEngine(registry, settings)


def cmd_list(args: argparse.Namespace) -> int:
    """List installed docsets and the index dialect of each.

    Returns:
        0 if at least one docset is installed, 1 otherwise, 2 on config errors.
    """
    settings, engine = _build_engine(args)
    if engine is None:
        return 2

    registry = engine.registry
    names = registry.locator.installed_docsets()
    if not names:
        logging.warning("No docsets installed under %s", settings.docsets_root)
        return 1

    failures = registry.ensure_buffer_local(names)
    for name in names:
        entry = registry.get(name)
        if entry is not None:
            print(f"{name}\t{entry.dialect.value}")
        else:
            print(f"{name}\tERROR: {failures.get(name)}")
    registry.reset()
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    """Search the active docsets and print candidates.

    The active set is the ``--docset`` names (or the ``--context`` docsets
    from config) plus the configured common docsets unless ``--no-common``.

    Returns:
        0 if any candidate was found, 1 if none was, 2 on config errors.
    """
    settings, engine = _build_engine(args)
    if engine is None:
        return 2

    pattern = " ".join(args.pattern)
    if len(pattern) < settings.min_length:
        logging.warning(
            "Pattern %r is shorter than the minimum length (%d)", pattern, settings.min_length
        )
        return 1

    local: List[str] = list(args.docset or []) or settings.local_docsets_for(args.context)
    common: List[str] = [] if args.no_common else list(settings.common_docsets)
    if not local and not common:
        logging.error("No docsets to search: pass --docset, --context or configure common_docsets")
        return 2

    try:
        try:
            outcome = engine.run_search(pattern, local, common)
        except ValueError as e:
            logging.error("Invalid candidate format: %s", e)
            return 2

        for name, err in outcome.failures.items():
            logging.warning("%s: %s", name, err)

        candidates = outcome.candidates[: args.limit] if args.limit else outcome.candidates
        if args.json:
            records = []
            for c in candidates:
                record = c.to_dict()
                try:
                    record["url"] = candidate_url(engine.registry.locator, c)
                except DocsetNotFound as e:
                    record["url"] = None
                    record["error"] = str(e)
                records.append(record)
            print(json.dumps(records, ensure_ascii=False, indent=2))
        else:
            for c in candidates:
                if args.urls:
                    try:
                        url = candidate_url(engine.registry.locator, c)
                    except DocsetNotFound as e:
                        logging.warning("%s", e)
                        url = ""
                    print(f"{c.display_text}\t{url}")
                else:
                    print(c.display_text)
    finally:
        engine.reset()

    if not outcome.candidates:
        logging.info("No matches for %r in %s", pattern, ", ".join(outcome.searched) or "no docsets")
        return 1
    return 0


def cmd_url(args: argparse.Namespace) -> int:
    """Print the URL of an index path inside a docset."""
    settings = _load_settings(args)
    if settings is None:
        return 2
    try:
        url = resolve_url(DocsetLocator(settings.docsets_root), args.docset, args.path, args.anchor)
    except DocsetNotFound as e:
        logging.error("%s", e)
        return 2
    print(url)
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    """Print location, index dialect and plist metadata of one docset."""
    settings = _load_settings(args)
    if settings is None:
        return 2
    locator = DocsetLocator(settings.docsets_root)
    try:
        root = locator.locate(args.docset)
        db_path = locator.db_path(args.docset)
        info = {
            "name": args.docset,
            "path": str(root),
            "index": str(db_path),
            "documents": str(locator.documents_path(args.docset)),
        }
        conn = connect_readonly(db_path)
        try:
            info["dialect"] = detect_dialect(conn, docset_name=args.docset, db_path=db_path).value
        finally:
            conn.close()
        info.update(locator.describe(args.docset))
    except DocsetSearchError as e:
        logging.error("%s", e)
        return 2
    except sqlite3.Error as e:
        logging.error("Failed to open index for %s: %s", args.docset, e)
        return 2

    for key, value in info.items():
        print(f"{key}: {value}")
    return 0


def cmd_mcp_server(args: argparse.Namespace) -> int:
    """Start the MCP server.

    Default: stdio. If --port is set, run HTTP transport at host:port.
    """
    try:
        mcp_server = importlib.import_module("docset_search.interfaces.mcp.server")
    except (ModuleNotFoundError, AttributeError, ImportError, RuntimeError) as e:
        logging.error(
            "Failed to import MCP server. Ensure 'mcp' is installed. Error: %s",
            e,
        )
        return 3
    settings = _load_settings(args)
    if settings is None:
        return 2
    port = getattr(args, "port", None)
    host = getattr(args, "host", None) or "127.0.0.1"
    if port:
        logging.info(
            "Starting MCP HTTP server on %s:%s (docsets root: %s)",
            host,
            port,
            settings.docsets_root,
        )
    else:
        logging.info("Starting MCP stdio server with docsets root: %s", settings.docsets_root)
    try:
        if port:
            getattr(mcp_server, "run_http")(settings, host=host, port=int(port))
        else:
            mcp_server.run(settings)
    except KeyboardInterrupt:
        logging.info("MCP server stopped")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="docset-search",
        description=f"Docset Search Tools (v{_PACKAGE_VERSION})",
    )
    p.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    p.add_argument(
        "--warnings-only",
        action="store_true",
        help="Show only warnings and errors (overrides --verbose)",
    )
    p.add_argument(
        "--errors-only",
        action="store_true",
        help="Show only errors (overrides --warnings-only and --verbose)",
    )
    p.add_argument(
        "--config",
        default=None,
        help="Path to docsets.yaml (defaults to config/docsets.yaml when present)",
    )
    p.add_argument(
        "--docsets-root",
        default=None,
        help="Directory holding installed docsets (overrides the config, default ~/.docsets)",
    )

    sub = p.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="List installed docsets and their index dialect")
    p_list.set_defaults(func=cmd_list)

    p_search = sub.add_parser("search", help="Search the active docsets")
    p_search.add_argument("pattern", nargs="+", help="Search terms; all must occur in the name")
    p_search.add_argument(
        "--docset",
        action="append",
        default=None,
        help="Docset to search (repeatable). Overrides --context.",
    )
    p_search.add_argument(
        "--context",
        default=None,
        help="Context name from the config whose docsets are searched",
    )
    p_search.add_argument(
        "--no-common",
        action="store_true",
        help="Do not search the configured common docsets",
    )
    p_search.add_argument(
        "--limit",
        type=_non_negative_int,
        default=0,
        help="Print at most this many results (0 prints all)",
    )
    p_search.add_argument("--json", action="store_true", help="Print results as JSON with URLs")
    p_search.add_argument("--urls", action="store_true", help="Print the URL next to each result")
    p_search.set_defaults(func=cmd_search)

    p_url = sub.add_parser("url", help="Resolve an index path to a document URL")
    p_url.add_argument("docset", help="Docset name")
    p_url.add_argument("path", help="Path relative to the docset's Documents directory")
    p_url.add_argument("--anchor", default=None, help="Anchor inside the page")
    p_url.set_defaults(func=cmd_url)

    p_info = sub.add_parser("info", help="Show where a docset lives and its index dialect")
    p_info.add_argument("docset", help="Docset name")
    p_info.set_defaults(func=cmd_info)

    p_mcp = sub.add_parser("mcp-server", help="Run the MCP server (stdio or HTTP)")
    p_mcp.add_argument(
        "--port",
        default=None,
        help="If set, run HTTP transport on the given port",
    )
    p_mcp.add_argument(
        "--host",
        default=None,
        help="Host to bind for HTTP transport (default 127.0.0.1)",
    )
    p_mcp.set_defaults(func=cmd_mcp_server)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        verbose=bool(args.verbose),
        warnings_only=bool(getattr(args, "warnings_only", False)),
        errors_only=bool(getattr(args, "errors_only", False)),
    )
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
