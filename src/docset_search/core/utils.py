"""Core utility functions for Docset Search Tools.

This module provides the fixed on-disk layout shared by every docset.
"""

from __future__ import annotations

from pathlib import Path

DOCSET_SUFFIX = ".docset"
INDEX_FILENAME = "docSet.dsidx"
RESOURCES_DIR = Path("Contents") / "Resources"
DOCUMENTS_DIR = RESOURCES_DIR / "Documents"
INFO_PLIST = Path("Contents") / "Info.plist"


def get_docset_paths(docset_dir: Path) -> tuple[Path, Path]:
    """Get index database and documents paths for a docset directory.

    Constructs file paths following the Dash docset layout:
    - Index: {docset_dir}/Contents/Resources/docSet.dsidx
    - Documents: {docset_dir}/Contents/Resources/Documents

    Args:
        docset_dir: Path to the ``.docset`` bundle directory.

    Returns:
        A tuple of (index_db_path, documents_path).

    Examples:
        >>> from pathlib import Path
        >>> db_path, docs_path = get_docset_paths(Path("docsets/Redis.docset"))
        >>> print(db_path.as_posix())
        docsets/Redis.docset/Contents/Resources/docSet.dsidx
        >>> print(docs_path.as_posix())
        docsets/Redis.docset/Contents/Resources/Documents
    """
    return docset_dir / RESOURCES_DIR / INDEX_FILENAME, docset_dir / DOCUMENTS_DIR


def docset_name_from_dir(docset_dir: Path) -> str:
    """Return the docset name for a bundle directory (its name minus ``.docset``)."""
    name = docset_dir.name
    if name.endswith(DOCSET_SUFFIX):
        return name[: -len(DOCSET_SUFFIX)]
    return name
