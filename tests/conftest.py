"""Shared pytest configuration, fixtures, and utilities for docset testing.

Docsets are built on the fly under ``tmp_path`` as real SQLite bundles in
either index dialect, so every test runs against the same layout a Dash
install would have.
"""

import sqlite3
from pathlib import Path
from typing import Iterable, Optional, Tuple

import pytest

from docset_search.config import SearchSettings
from docset_search.docsets.locator import DocsetLocator
from docset_search.docsets.registry import ConnectionRegistry
from docset_search.search.engine import SearchEngine

# (type, name, path, anchor)
Entry = Tuple[str, str, str, Optional[str]]

REDIS_ENTRIES = [
    ("Command", "BLPOP", "commands/blpop.html", None),
    ("Command", "BRPOP", "commands/brpop.html", None),
    ("Command", "LPOP", "commands/lpop.html", None),
    ("Command", "LPUSH", "commands/lpush.html", None),
    ("Command", "RPOPLPUSH", "commands/rpoplpush.html", None),
    ("Command", "redis-cli", "topics/rediscli.html", None),
    ("Guide", "Redis Persistence", "topics/persistence.html", "rdb"),
]

GO_ENTRIES = [
    ("Function", "strings.Split", "pkg/strings/index.html", "Split"),
    ("Function", "strings.SplitN", "pkg/strings/index.html", "SplitN"),
    ("Function", "strings.SplitAfter", "pkg/strings/index.html", "SplitAfter"),
    ("Type", "http.Client", "pkg/net/http/index.html", "Client"),
    ("Function", "http.Get", "pkg/net/http/index.html", "Get"),
    ("Function", "redis.Dial", "pkg/redis/index.html", "Dial"),
]


def _docset_dir(root: Path, name: str, layout: str) -> Path:
    if layout == "flat":
        return root / f"{name}.docset"
    if layout == "nested":
        return root / name / f"{name}.docset"
    # archive extracted into a folder with a different bundle name
    return root / name / f"{layout}.docset"


def _prepare(root: Path, name: str, layout: str) -> Tuple[Path, Path]:
    docset_dir = _docset_dir(root, name, layout)
    resources = docset_dir / "Contents" / "Resources"
    (resources / "Documents").mkdir(parents=True, exist_ok=True)
    return docset_dir, resources / "docSet.dsidx"


def make_legacy_docset(
    root: Path, name: str, entries: Iterable[Entry], *, layout: str = "flat"
) -> Path:
    """Create a docset with the flat ``searchIndex`` table.

    Anchors are folded into the path as ``#anchor``, like Dash does.
    """
    docset_dir, db_path = _prepare(root, name, layout)
    con = sqlite3.connect(db_path)
    try:
        con.execute(
            "CREATE TABLE searchIndex(id INTEGER PRIMARY KEY, name TEXT, type TEXT, path TEXT)"
        )
        con.executemany(
            "INSERT INTO searchIndex(name, type, path) VALUES (?, ?, ?)",
            [(n, t, f"{p}#{a}" if a else p) for t, n, p, a in entries],
        )
        con.commit()
    finally:
        con.close()
    return docset_dir


def make_modern_docset(
    root: Path, name: str, entries: Iterable[Entry], *, layout: str = "flat"
) -> Path:
    """Create a docset with the Core Data ZTOKEN tables."""
    docset_dir, db_path = _prepare(root, name, layout)
    con = sqlite3.connect(db_path)
    try:
        con.executescript(
            """
            CREATE TABLE ZTOKENTYPE (Z_PK INTEGER PRIMARY KEY, ZTYPENAME VARCHAR);
            CREATE TABLE ZTOKEN (Z_PK INTEGER PRIMARY KEY, ZTOKENNAME VARCHAR, ZTOKENTYPE INTEGER);
            CREATE TABLE ZFILEPATH (Z_PK INTEGER PRIMARY KEY, ZPATH VARCHAR);
            CREATE TABLE ZTOKENMETAINFORMATION (
                Z_PK INTEGER PRIMARY KEY, ZTOKEN INTEGER, ZFILE INTEGER, ZANCHOR VARCHAR
            );
            """
        )
        type_ids: dict = {}
        file_ids: dict = {}
        for token_id, (etype, ename, path, anchor) in enumerate(entries, start=1):
            if etype not in type_ids:
                type_ids[etype] = len(type_ids) + 1
                con.execute(
                    "INSERT INTO ZTOKENTYPE(Z_PK, ZTYPENAME) VALUES (?, ?)", (type_ids[etype], etype)
                )
            if path not in file_ids:
                file_ids[path] = len(file_ids) + 1
                con.execute("INSERT INTO ZFILEPATH(Z_PK, ZPATH) VALUES (?, ?)", (file_ids[path], path))
            con.execute(
                "INSERT INTO ZTOKEN(Z_PK, ZTOKENNAME, ZTOKENTYPE) VALUES (?, ?, ?)",
                (token_id, ename, type_ids[etype]),
            )
            con.execute(
                "INSERT INTO ZTOKENMETAINFORMATION(Z_PK, ZTOKEN, ZFILE, ZANCHOR) VALUES (?, ?, ?, ?)",
                (token_id, token_id, file_ids[path], anchor),
            )
        con.commit()
    finally:
        con.close()
    return docset_dir


def make_unknown_docset(root: Path, name: str) -> Path:
    """Create a docset whose index matches neither dialect."""
    docset_dir, db_path = _prepare(root, name, "flat")
    con = sqlite3.connect(db_path)
    try:
        con.execute("CREATE TABLE something_else(id INTEGER PRIMARY KEY)")
        con.commit()
    finally:
        con.close()
    return docset_dir


@pytest.fixture
def docsets_root(tmp_path: Path) -> Path:
    """A docsets root with a legacy "Redis" and a modern "Go" docset."""
    root = tmp_path / "docsets"
    root.mkdir()
    make_legacy_docset(root, "Redis", REDIS_ENTRIES)
    make_modern_docset(root, "Go", GO_ENTRIES)
    return root


@pytest.fixture
def locator(docsets_root: Path) -> DocsetLocator:
    return DocsetLocator(docsets_root)


@pytest.fixture
def registry(locator: DocsetLocator):
    reg = ConnectionRegistry(locator)
    yield reg
    reg.reset()


@pytest.fixture
def settings(docsets_root: Path) -> SearchSettings:
    return SearchSettings(
        docsets_root=docsets_root,
        min_length=3,
        candidate_format="{docset} {name}",
        common_docsets=["Redis"],
        contexts={"go": ["Go"]},
    )


@pytest.fixture
def engine(registry: ConnectionRegistry, settings: SearchSettings) -> SearchEngine:
    return SearchEngine(registry, settings)
