from __future__ import annotations

import logging
import plistlib
from pathlib import Path
from typing import Any, Dict, List, Optional

from docset_search.core.errors import DocsetNotFound
from docset_search.core.utils import (
    DOCSET_SUFFIX,
    INFO_PLIST,
    docset_name_from_dir,
    get_docset_paths,
)


logger = logging.getLogger(__name__)

_PLIST_KEYS = ("CFBundleName", "CFBundleIdentifier", "DocSetPlatformFamily", "dashIndexFilePath")


class DocsetLocator:
    """Map docset names to bundle directories under a docsets root."""

    def __init__(self, docsets_root: Path) -> None:
        self.docsets_root = Path(docsets_root)

    def _candidates(self, name: str) -> List[Path]:
        root = self.docsets_root
        out = [root / f"{name}{DOCSET_SUFFIX}", root / name / f"{name}{DOCSET_SUFFIX}"]
        nested_parent = root / name
        if nested_parent.is_dir():
            # Archives sometimes extract into a folder with a different bundle name
            out.extend(
                sorted(
                    p for p in nested_parent.iterdir() if p.name.endswith(DOCSET_SUFFIX)
                )
            )
        return out

    def find(self, name: str) -> Optional[Path]:
        """Return the docset directory for ``name`` or None when not installed."""
        if not name:
            return None
        for candidate in self._candidates(name):
            if candidate.is_dir():
                return candidate
        return None

    def locate(self, name: str) -> Path:
        """Return the docset directory for ``name``.

        Resolution order, first existing directory wins:
        ``<root>/<name>.docset``, ``<root>/<name>/<name>.docset``, then the
        first ``*.docset`` entry directly inside ``<root>/<name>/``.

        Raises:
            DocsetNotFound: If no directory resolves.
        """
        path = self.find(name)
        if path is None:
            raise DocsetNotFound(name, docsets_root=self.docsets_root)
        return path

    def db_path(self, name: str) -> Path:
        """Return the index database path of an installed docset."""
        db_path, _ = get_docset_paths(self.locate(name))
        return db_path

    def documents_path(self, name: str) -> Path:
        """Return the Documents directory of an installed docset."""
        _, documents = get_docset_paths(self.locate(name))
        return documents

    def is_installed(self, name: str) -> bool:
        return self.find(name) is not None

    def installed_docsets(self) -> List[str]:
        """List names of all docsets installed under the root.

        Both ``<root>/<Name>.docset`` and the nested ``<root>/<Name>/...``
        layouts are recognized. Names are de-duplicated and sorted
        case-insensitively.
        """
        root = self.docsets_root
        if not root.exists() or not root.is_dir():
            return []

        names: Dict[str, str] = {}
        for entry in sorted(root.iterdir()):
            if not entry.is_dir():
                continue
            if entry.name.endswith(DOCSET_SUFFIX):
                name = docset_name_from_dir(entry)
            elif any(p.name.endswith(DOCSET_SUFFIX) and p.is_dir() for p in entry.iterdir()):
                name = entry.name
            else:
                continue
            names.setdefault(name.lower(), name)
        return sorted(names.values(), key=str.lower)

    def describe(self, name: str) -> Dict[str, Any]:
        """Return selected Info.plist metadata for an installed docset.

        A missing or unreadable plist yields an empty dict.
        """
        plist_path = self.locate(name) / INFO_PLIST
        if not plist_path.exists():
            return {}
        try:
            with plist_path.open("rb") as f:
                info = plistlib.load(f)
        except (OSError, plistlib.InvalidFileException, ValueError) as e:
            logger.warning("Unreadable Info.plist for %s: %s", name, e)
            return {}
        return {k: info[k] for k in _PLIST_KEYS if k in info}
