"""Installed docsets: locating bundles, detecting index dialects and
keeping their connections open.

Public API:
    DocsetLocator: Resolve docset names to bundle directories
    detect_dialect: Classify an index database
    ConnectionRegistry: Per-docset connection cache with common/local tiers
"""

from __future__ import annotations

from .locator import DocsetLocator
from .registry import ConnectionRegistry, DocsetDescriptor, RegistryEntry
from .schema import detect_dialect

__all__ = [
    "DocsetLocator",
    "detect_dialect",
    "ConnectionRegistry",
    "DocsetDescriptor",
    "RegistryEntry",
]
