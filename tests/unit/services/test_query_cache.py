# tests/unit/services/test_query_cache.py
"""Unit tests for the in-process query cache."""

import threading
import time
from unittest.mock import Mock

import pytest

from swimdesk.services.query_cache import QueryCache, QueryKeys


class TestQueryKeys:
    def test_scoped_keys(self):
        assert QueryKeys.instructor("i1") == "instructor:i1"
        assert QueryKeys.instructor("i1", "sessions") == "instructor:i1:sessions"
        assert QueryKeys.user("u1", "purchases") == "user:u1:purchases"
        assert QueryKeys.all_users() == "user:*"


class TestQueryCache:
    def test_second_fetch_is_served_from_cache(self):
        cache = QueryCache()
        loader = Mock(return_value=["c1"])

        assert cache.fetch(QueryKeys.CLASSES, loader) == ["c1"]
        assert cache.fetch(QueryKeys.CLASSES, loader) == ["c1"]
        loader.assert_called_once()

    def test_invalidate_forces_reload(self):
        cache = QueryCache()
        loader = Mock(side_effect=[1, 2])
        cache.fetch("sessions", loader)

        assert cache.invalidate("sessions") is True
        assert cache.fetch("sessions", loader) == 2
        assert cache.invalidate("missing") is False

    def test_pattern_invalidation(self):
        cache = QueryCache()
        for key in ("user:u1", "user:u1:sessions", "user:u2", "classes"):
            cache.fetch(key, lambda: key)

        removed = cache.invalidate_pattern(QueryKeys.user("u1", "*"))

        assert removed == 1
        assert cache.peek("user:u1:sessions") is None
        for key in ("classes", "user:u1", "user:u2"):
            assert cache.peek(key) == key
        assert cache.invalidate_pattern(QueryKeys.all_users()) == 2

    def test_loader_errors_are_not_cached(self):
        cache = QueryCache()

        with pytest.raises(RuntimeError):
            cache.fetch("settings", Mock(side_effect=RuntimeError("boom")))

        assert cache.peek("settings") is None
        assert cache.fetch("settings", lambda: "ok") == "ok"

    def test_stale_entries_reload(self):
        cache = QueryCache(stale_after=0.0)
        loader = Mock(side_effect=["old", "new"])
        cache.fetch("packages", loader)
        time.sleep(0.01)

        assert cache.fetch("packages", loader) == "new"

    def test_refetch_and_clear(self):
        cache = QueryCache()
        cache.fetch("users", lambda: 1)

        assert cache.refetch("users", lambda: 2) == 2
        cache.clear()
        assert cache.peek("users") is None

    def test_concurrent_fetches_share_one_load(self):
        cache = QueryCache()
        release = threading.Event()
        calls = []

        def slow_loader():
            calls.append(1)
            release.wait(timeout=5)
            return "sessions"

        results = []
        threads = [
            threading.Thread(target=lambda: results.append(cache.fetch("sessions", slow_loader)))
            for _ in range(4)
        ]
        for thread in threads:
            thread.start()
        time.sleep(0.1)
        release.set()
        for thread in threads:
            thread.join(timeout=5)

        assert results == ["sessions"] * 4
        assert len(calls) == 1

    def test_load_invalidated_mid_flight_is_not_stored(self):
        cache = QueryCache()

        def loader():
            cache.invalidate("sessions")
            return "stale"

        assert cache.fetch("sessions", loader) == "stale"
        assert cache.peek("sessions") is None

    def test_invalidation_bookkeeping_does_not_grow(self):
        cache = QueryCache()
        for index in range(500):
            key = QueryKeys.user(f"u{index}", "sessions")
            cache.fetch(key, lambda: [])
            cache.invalidate(key)
            cache.invalidate_pattern(QueryKeys.user(f"u{index}", "*"))

        def loader():
            cache.invalidate("sessions")
            return "stale"

        cache.fetch("sessions", loader)

        assert cache._generations == {}
        assert cache._inflight == {}

    def test_invalidation_during_a_shared_load_still_discards_it(self):
        cache = QueryCache()
        started = threading.Event()
        release = threading.Event()

        def slow_loader():
            started.set()
            release.wait(timeout=5)
            return "stale"

        worker = threading.Thread(target=lambda: cache.fetch("sessions", slow_loader))
        worker.start()
        assert started.wait(timeout=5)
        cache.invalidate("sessions")
        release.set()
        worker.join(timeout=5)

        assert cache.peek("sessions") is None
        assert cache._generations == {}
        assert cache.fetch("sessions", lambda: "fresh") == "fresh"

    def test_private_load_neither_waits_nor_stores(self):
        cache = QueryCache()
        started = threading.Event()
        release = threading.Event()

        def slow_loader():
            started.set()
            release.wait(timeout=5)
            return "shared"

        worker = threading.Thread(target=lambda: cache.fetch("settings", slow_loader))
        worker.start()
        assert started.wait(timeout=5)

        assert cache.fetch("settings", lambda: "private", share=False) == "private"
        assert cache.peek("settings") is None

        release.set()
        worker.join(timeout=5)
        assert cache.peek("settings") == "shared"
        assert cache.fetch("settings", lambda: "private", share=False) == "shared"
