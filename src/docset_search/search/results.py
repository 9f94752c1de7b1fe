"""Turn index rows into display candidates and document URLs."""

from __future__ import annotations

import re
import string
from typing import Optional

from docset_search.core.schemas import Candidate, IndexRow
from docset_search.docsets.locator import DocsetLocator


FORMAT_FIELDS = ("docset", "name", "type", "filename")

# Redirect markers some legacy docsets embed in index paths
_DASH_ENTRY_RE = re.compile(r"<dash_entry_[^>]*>")
_REMOTE_RE = re.compile(r"^https?://")


def short_file_name(path: str) -> str:
    """Return the last path segment without fragment and extension.

    Examples:
        >>> short_file_name("commands/blpop.html#syntax")
        'blpop'
        >>> short_file_name("index")
        'index'
    """
    last = clean_path(path).split("#", 1)[0].rstrip("/").rsplit("/", 1)[-1]
    stem, dot, _ext = last.rpartition(".")
    return stem if dot and stem else last


def _check_template(template: str) -> None:
    for _literal, field_name, _spec, _conv in string.Formatter().parse(template):
        if field_name is not None and field_name not in FORMAT_FIELDS:
            raise ValueError(
                f"Unknown placeholder '{{{field_name}}}' in candidate format. "
                f"Valid placeholders: {', '.join(FORMAT_FIELDS)}"
            )


def format_candidate(docset_name: str, row: IndexRow, template: str) -> str:
    """Render a candidate's display text.

    Recognized placeholders are ``{docset}``, ``{name}``, ``{type}`` and
    ``{filename}`` (see ``short_file_name``).

    Raises:
        ValueError: If the template uses any other placeholder.
    """
    _check_template(template)
    return template.format(
        docset=docset_name,
        name=row.entry_name,
        type=row.entry_type,
        filename=short_file_name(row.relative_path),
    )


def make_candidate(docset_name: str, row: IndexRow, template: str) -> Candidate:
    return Candidate(
        display_text=format_candidate(docset_name, row, template),
        docset_name=docset_name,
        row=row,
    )


def clean_path(relative_path: str) -> str:
    """Remove every ``<dash_entry_...>`` marker from an index path."""
    return _DASH_ENTRY_RE.sub("", relative_path or "")


def resolve_url(
    locator: DocsetLocator,
    docset_name: str,
    relative_path: str,
    anchor: Optional[str] = None,
) -> str:
    """Resolve an index path to a browsable URL.

    Remote ``http(s)://`` paths are returned as-is, without ``anchor``.
    Local paths become a ``file:///`` URL under the docset's Documents
    directory with ``#anchor`` appended and spaces encoded as ``%20``.

    Raises:
        DocsetNotFound: If the docset is no longer installed.
    """
    path = clean_path(relative_path)
    if _REMOTE_RE.match(path):
        return path
    if anchor:
        path = f"{path}#{anchor}"

    documents = locator.documents_path(docset_name).as_posix().lstrip("/")
    url = f"file:///{documents}/{path.lstrip('/')}"
    return url.replace(" ", "%20")


def candidate_url(locator: DocsetLocator, candidate: Candidate) -> str:
    """Resolve the URL of a previously returned candidate."""
    return resolve_url(
        locator,
        candidate.docset_name,
        candidate.row.relative_path,
        candidate.row.anchor,
    )
