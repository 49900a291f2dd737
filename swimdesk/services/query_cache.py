# swimdesk/services/query_cache.py
"""
Read-result cache for SwimDesk

Read operations are cached under query keys (``classes``, ``sessions``,
``instructor:<id>:...``). Concurrent loads of the same key share a single
backend round trip; mutations invalidate keys explicitly, by exact key or
by glob pattern. A load that started before an invalidation never writes
its (possibly stale) result back. Generation counters exist only for keys
with a load in flight, so the bookkeeping stays as small as the cache.
"""

from concurrent.futures import Future
import fnmatch
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)


class QueryKeys:
    """Query key vocabulary shared by services and routes."""

    CLASSES = "classes"
    SESSIONS = "sessions"
    PACKAGES = "packages"
    USERS = "users"
    SETTINGS = "settings"
    PURCHASES = "purchases"

    @staticmethod
    def instructor(instructor_id: str, *parts: str) -> str:
        return ":".join(("instructor", instructor_id, *parts))

    @staticmethod
    def user(user_id: str, *parts: str) -> str:
        return ":".join(("user", user_id, *parts))

    @staticmethod
    def all_instructors() -> str:
        return "instructor:*"

    @staticmethod
    def all_users() -> str:
        return "user:*"


class QueryCache:
    """
    In-process query cache with request de-duplication.

    Args:
        stale_after: Seconds before an entry is reloaded; None keeps entries
            until they are invalidated
    """

    def __init__(self, stale_after: Optional[float] = None):
        self.stale_after = stale_after
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._inflight: Dict[str, Future] = {}
        self._generations: Dict[str, int] = {}

    def fetch(self, key: str, loader: Callable[[], Any], share: bool = True) -> Any:
        """
        Return the cached value for ``key``, loading it on a miss.

        When another thread is already loading ``key`` the caller waits for
        that load instead of starting its own. Loader exceptions propagate to
        every waiting caller and nothing is cached.

        With ``share=False`` a miss runs ``loader`` privately: the caller never
        waits on another thread's load and the result is not stored. Callers
        holding storage locks use this, since the thread they would wait on may
        itself be waiting for those locks.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and not self._is_stale(entry):
                prometheus_metrics.inc_query_cache("hit")
                return entry[0]
            if share:
                future = self._inflight.get(key)
                leader = future is None
                if leader:
                    future = Future()
                    self._inflight[key] = future
                    generation = self._generations.get(key, 0)

        if not share:
            prometheus_metrics.inc_query_cache("bypass")
            return loader()
        if not leader:
            prometheus_metrics.inc_query_cache("shared")
            return future.result()

        prometheus_metrics.inc_query_cache("miss")
        try:
            value = loader()
        except BaseException as exc:
            with self._lock:
                self._inflight.pop(key, None)
                self._generations.pop(key, None)
            future.set_exception(exc)
            raise

        with self._lock:
            self._inflight.pop(key, None)
            if self._generations.pop(key, 0) == generation:
                self._entries[key] = (value, time.monotonic())
            else:
                logger.debug("Discarding load of %s invalidated mid-flight", key)
        future.set_result(value)
        return value

    def peek(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            return entry[0] if entry is not None else None

    def invalidate(self, key: str) -> bool:
        """Drop ``key``. Returns whether a cached value was removed."""
        with self._lock:
            return self._invalidate_locked(key)

    def invalidate_pattern(self, pattern: str) -> int:
        """Drop every key matching the glob ``pattern``. Returns the count removed."""
        with self._lock:
            matching = {
                key
                for key in list(self._entries) + list(self._inflight)
                if fnmatch.fnmatchcase(key, pattern)
            }
            return sum(1 for key in matching if self._invalidate_locked(key))

    def refetch(self, key: str, loader: Callable[[], Any]) -> Any:
        """Invalidate ``key`` and load it again."""
        self.invalidate(key)
        return self.fetch(key, loader)

    def clear(self) -> None:
        with self._lock:
            for key in list(self._entries) + list(self._inflight):
                self._invalidate_locked(key)

    def _invalidate_locked(self, key: str) -> bool:
        if key in self._inflight:
            self._generations[key] = self._generations.get(key, 0) + 1
        return self._entries.pop(key, None) is not None

    def _is_stale(self, entry: Tuple[Any, float]) -> bool:
        if self.stale_after is None:
            return False
        return time.monotonic() - entry[1] > self.stale_after
