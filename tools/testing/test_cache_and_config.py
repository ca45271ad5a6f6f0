"""
Test the TTL cache, client config loading and the performance store.

Run: python tools/testing/test_cache_and_config.py
"""

import sys
import tempfile
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest
from pydantic import ValidationError

from nk_core.cache import TTLCache
from nk_core.config_loader import load_client_config
from nk_core.models import PerformanceRow
from nk_scorer.mock_extract import mock_search_terms
from nk_scorer.performance_store import PerformanceStore

PROJECT_ROOT = Path(__file__).parent.parent.parent


def test_cache_ttl():
    print("\n=== TEST 1: TTL Cache ===")

    now = [100.0]
    cache = TTLCache(default_ttl=10, clock=lambda: now[0])

    cache.set("a", 1)
    cache.set("b", 2, ttl=60)
    assert cache.get("a") == 1
    now[0] += 11
    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.size() == 1

    calls = []
    assert cache.get_or_load("c", lambda: calls.append(1) or "loaded") == "loaded"
    assert cache.get_or_load("c", lambda: calls.append(1) or "again") == "loaded"
    assert len(calls) == 1

    cache.delete("c")
    assert cache.get("c") is None
    cache.clear()
    assert cache.size() == 0
    print("✅ PASS: expiry, loader, delete, clear")


def test_example_config_loads():
    print("\n=== TEST 2: Client Config ===")

    config = load_client_config(str(PROJECT_ROOT / "configs" / "client_example.yaml"))

    assert config.google_ads.customer_id == "1234567890"
    assert config.worker.interval_minutes == 15
    assert config.provisioning.max_keywords_per_request == 100
    print(f"✅ PASS: {config.client_name}")


def test_invalid_config_rejected(tmp_path=None):
    tmp = Path(tmp_path or tempfile.mkdtemp())

    bad = tmp / "bad.yaml"
    bad.write_text("client_name: X\ngoogle_ads:\n  customer_id: 'abc'\n", encoding="utf8")
    with pytest.raises(ValidationError):
        load_client_config(str(bad))

    zero = tmp / "zero.yaml"
    zero.write_text("client_name: X\ngoogle_ads:\n  customer_id: '1'\nworker:\n  interval_minutes: 0\n", encoding="utf8")
    with pytest.raises(ValidationError):
        load_client_config(str(zero))

    with pytest.raises(FileNotFoundError):
        load_client_config(str(tmp / "missing.yaml"))


def test_performance_store_snapshot():
    print("\n=== TEST 3: Performance Store ===")

    store = PerformanceStore(str(Path(tempfile.mkdtemp()) / "perf.duckdb"))
    rows = mock_search_terms(seed=42)

    assert store.replace_snapshot(rows) == len(rows)
    loaded = store.load_rows()
    assert [r.id for r in loaded] == [r.id for r in rows]
    assert loaded[0].search_term == rows[0].search_term

    # Replaced wholesale
    store.replace_snapshot(rows[:2])
    assert store.count() == 2

    # Invalid snapshot is refused and the old one kept
    bad = [PerformanceRow("x", "t", clicks=5, impressions=1)]
    with pytest.raises(ValueError):
        store.replace_snapshot(bad)
    assert store.count() == 2
    print("✅ PASS: replace, reload, reject")


def test_mock_extract_deterministic():
    assert mock_search_terms(seed=7) == mock_search_terms(seed=7)
    for r in mock_search_terms(seed=7):
        assert 0 <= r.clicks <= r.impressions


if __name__ == "__main__":
    print("=" * 70)
    print("CACHE / CONFIG / STORE TESTS")
    print("=" * 70)

    test_cache_ttl()
    test_example_config_loads()
    test_invalid_config_rejected()
    test_performance_store_snapshot()
    test_mock_extract_deterministic()

    print("\n" + "=" * 70)
    print("✅ ALL CACHE / CONFIG TESTS PASSED")
    print("=" * 70)
