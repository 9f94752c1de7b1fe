"""Tests for the per-docset connection registry."""

import sqlite3
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import REDIS_ENTRIES, make_legacy_docset, make_unknown_docset
from docset_search.core.enums import Dialect, RegistryTier
from docset_search.core.errors import DocsetNotFound, SchemaUnrecognized
from docset_search.docsets import registry as registry_module
from docset_search.docsets.registry import ConnectionRegistry


def test_ensure_common_registers_each_docset(registry: ConnectionRegistry):
    failures = registry.ensure_common(["Redis", "Go"])

    assert failures == {}
    assert sorted(registry.names()) == ["Go", "Redis"]
    assert registry.get("Redis").dialect == Dialect.LEGACY_INDEX
    assert registry.get("Go").dialect == Dialect.MODERN_INDEX
    assert registry.get("Go").tier == RegistryTier.COMMON


def test_ensure_common_is_idempotent(registry: ConnectionRegistry):
    with patch.object(
        registry_module, "detect_dialect", wraps=registry_module.detect_dialect
    ) as detect, patch.object(
        registry_module, "connect_readonly", wraps=registry_module.connect_readonly
    ) as connect:
        registry.ensure_common(["Redis", "Go"])
        handles = {e.name: e.handle for e in registry.entries()}
        registry.ensure_common(["Redis", "Go"])

    assert connect.call_count == 2
    assert detect.call_count == 2
    assert {e.name: e.handle for e in registry.entries()} == handles


def test_missing_docset_does_not_abort_batch(registry: ConnectionRegistry):
    failures = registry.ensure_common(["Missing", "Redis", "Go"])

    assert list(failures) == ["Missing"]
    assert isinstance(failures["Missing"], DocsetNotFound)
    assert sorted(registry.names()) == ["Go", "Redis"]


def test_unrecognized_schema_is_reported(registry: ConnectionRegistry, docsets_root: Path):
    make_unknown_docset(docsets_root, "Odd")

    failures = registry.ensure_buffer_local(["Odd", "Go"])

    assert isinstance(failures["Odd"], SchemaUnrecognized)
    assert "Odd" not in registry
    assert "Go" in registry


def test_duplicate_names_collapse(registry: ConnectionRegistry):
    registry.ensure_buffer_local(["Go", "Go", "Redis", "Go"])
    assert len(registry) == 2


def test_buffer_local_is_additive(registry: ConnectionRegistry):
    registry.ensure_common(["Redis"])
    registry.ensure_buffer_local(["Go"])
    registry.ensure_buffer_local([])

    assert sorted(registry.names()) == ["Go", "Redis"]
    assert registry.get("Redis").tier == RegistryTier.COMMON
    assert registry.get("Go").tier == RegistryTier.LOCAL


def test_buffer_local_keeps_existing_handle(registry: ConnectionRegistry):
    registry.ensure_common(["Redis"])
    handle = registry.get("Redis").handle
    registry.ensure_buffer_local(["Redis"])
    assert registry.get("Redis").handle is handle
    assert registry.get("Redis").tier == RegistryTier.COMMON


def test_common_tier_not_rebuilt_until_reset(registry: ConnectionRegistry):
    registry.ensure_common(["Redis"])
    registry.ensure_common(["Redis", "Go"])
    assert registry.names() == ["Redis"]

    registry.reset()
    registry.ensure_common(["Redis", "Go"])
    assert sorted(registry.names()) == ["Go", "Redis"]


def test_common_tier_retried_while_registry_empty(
    registry: ConnectionRegistry, docsets_root: Path
):
    failures = registry.ensure_common(["Valkey"])
    assert isinstance(failures["Valkey"], DocsetNotFound)
    assert len(registry) == 0

    make_legacy_docset(docsets_root, "Valkey", REDIS_ENTRIES)
    failures = registry.ensure_common(["Valkey"])

    assert failures == {}
    assert registry.names() == ["Valkey"]
    assert registry.get("Valkey").tier == RegistryTier.COMMON


def test_common_tier_skipped_once_local_registered(registry: ConnectionRegistry):
    registry.ensure_buffer_local(["Go"])
    assert registry.ensure_common(["Redis"]) == {}
    assert registry.names() == ["Go"]


def test_reset_closes_handles(registry: ConnectionRegistry):
    registry.ensure_common(["Redis", "Go"])
    handles = [e.handle for e in registry.entries()]

    registry.reset()

    assert len(registry) == 0
    for handle in handles:
        with pytest.raises(sqlite3.ProgrammingError):
            handle.execute("SELECT 1")


def test_reset_on_empty_registry(registry: ConnectionRegistry):
    registry.reset()
    registry.reset()
    assert len(registry) == 0


def test_context_manager_resets(locator):
    with ConnectionRegistry(locator) as reg:
        reg.ensure_common(["Go"])
        assert len(reg) == 1
    assert len(reg) == 0


def test_filtered_for_returns_active_union(registry: ConnectionRegistry):
    registry.ensure_common(["Redis"])
    registry.ensure_buffer_local(["Go"])

    entries = registry.filtered_for("split", ["Redis"], ["Go"])
    assert [e.name for e in entries] == ["Go", "Redis"]

    entries = registry.filtered_for("split", [], ["Go"])
    assert [e.name for e in entries] == ["Go"]


def test_filtered_for_skips_unregistered_names(registry: ConnectionRegistry):
    registry.ensure_common(["Redis"])
    assert [e.name for e in registry.filtered_for("pop", ["Redis", "Missing"], [])] == ["Redis"]


def test_filtered_for_narrows_on_docset_prefix(registry: ConnectionRegistry):
    registry.ensure_common(["Redis"])
    registry.ensure_buffer_local(["Go"])

    entries = registry.filtered_for("redis blpop", ["Redis"], ["Go"])
    assert [e.name for e in entries] == ["Redis"]

    entries = registry.filtered_for("GO split", ["Redis"], ["Go"])
    assert [e.name for e in entries] == ["Go"]


def test_filtered_for_ignores_prefix_of_inactive_docset(registry: ConnectionRegistry):
    """A registered docset outside this search's active set cannot hijack narrowing."""
    registry.ensure_common(["Redis"])
    registry.ensure_buffer_local(["Go"])

    entries = registry.filtered_for("go pop", ["Redis"], [])
    assert [e.name for e in entries] == ["Redis"]


def test_prefix_without_trailing_space_does_not_narrow(registry: ConnectionRegistry):
    registry.ensure_common(["Redis", "Go"])
    entries = registry.filtered_for("redis", ["Redis", "Go"], [])
    assert [e.name for e in entries] == ["Redis", "Go"]
