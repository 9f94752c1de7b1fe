"""Core enumerations used across the package."""

from __future__ import annotations

from enum import Enum


class Dialect(str, Enum):
    """Index database schemas a docset may ship with.

    Values are strings to ease serialization and CLI interchange.
    """

    LEGACY_INDEX = "LegacyIndex"  # flat `searchIndex` table
    MODERN_INDEX = "ModernIndex"  # Core Data ZTOKEN/ZFILEPATH tables


class RegistryTier(str, Enum):
    """Which docset list caused a connection to be registered."""

    COMMON = "common"
    LOCAL = "local"


__all__ = ["Dialect", "RegistryTier"]
