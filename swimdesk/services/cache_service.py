# swimdesk/services/cache_service.py
"""
Key/value cache for SwimDesk

Holds small JSON documents that must be visible to every worker: booking
wizard states and revoked token ids. Backed by Redis when ``redis_url`` is
configured, otherwise by an in-process dictionary with per-key expiry.
A circuit breaker stops a failing Redis from slowing every request down.
"""

from datetime import date, datetime, time
from enum import Enum
import json
import logging
import threading
import time as time_module
from typing import Any, Callable, Dict, Optional, TypeVar, Union

import redis
from redis import Redis
from redis.exceptions import RedisError

from ..core.exceptions import ServiceException
from .base import BaseService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject calls
    HALF_OPEN = "half_open"  # Testing if service recovered


class CircuitOpenError(RedisError):
    """Raised instead of calling through an open circuit when the caller asked to fail closed."""


class CircuitBreaker:
    """
    Circuit breaker pattern implementation for cache resilience.

    Prevents cascading failures when cache is unavailable.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        expected_exception: type[BaseException] = RedisError,
    ) -> None:
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception = expected_exception

        self._failure_count: int = 0
        self._last_failure_time: Optional[float] = None
        self._state: CircuitState = CircuitState.CLOSED
        self._lock = threading.Lock()

    @property
    def state(self) -> CircuitState:
        with self._lock:
            if self._state == CircuitState.OPEN and self._last_failure_time is not None:
                if time_module.monotonic() - self._last_failure_time >= self.recovery_timeout:
                    self._state = CircuitState.HALF_OPEN
            return self._state

    def call(
        self, func: Callable[..., T], *args: Any, fail_closed: bool = False, **kwargs: Any
    ) -> Optional[T]:
        """
        Execute function with circuit breaker protection.

        Args:
            fail_closed: Raise on an open circuit or any failure instead of
                returning None

        Returns:
            Function result, or None if the circuit is open
        """
        if self.state == CircuitState.OPEN:
            name = getattr(func, "__name__", repr(func))
            logger.warning(f"Circuit breaker is OPEN, skipping {name}")
            if fail_closed:
                raise CircuitOpenError(f"Circuit open, {name} not attempted")
            return None

        try:
            result = func(*args, **kwargs)
            self._on_success()
            return result
        except self.expected_exception:
            self._on_failure()
            if fail_closed or self.state == CircuitState.CLOSED:
                # Still under threshold (or caller fails closed), propagate error
                raise
            return None

    def _on_success(self) -> None:
        with self._lock:
            self._failure_count = 0
            if self._state == CircuitState.HALF_OPEN:
                self._state = CircuitState.CLOSED
                logger.info("Circuit breaker recovered, closing circuit")

    def _on_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            self._last_failure_time = time_module.monotonic()

            if self._failure_count >= self.failure_threshold:
                self._state = CircuitState.OPEN
                logger.warning(f"Circuit breaker opened after {self._failure_count} failures")


class CacheKeyBuilder:
    """Standardized cache key generation."""

    PREFIXES = {
        "wizard": "wiz",
        "revoked_token": "rtok",
    }

    @staticmethod
    def build(*parts: Union[str, int, date, datetime, time]) -> str:
        """
        Build a cache key from parts.

        Examples:
            build('wizard', '01J...') -> 'wiz:01J...'
        """
        formatted_parts = [
            part.isoformat() if isinstance(part, (date, datetime, time)) else str(part)
            for part in parts
        ]
        if parts and isinstance(parts[0], str) and parts[0] in CacheKeyBuilder.PREFIXES:
            formatted_parts[0] = CacheKeyBuilder.PREFIXES[parts[0]]
        return ":".join(formatted_parts)


class CacheService:
    """
    JSON key/value cache with TTLs.

    Args:
        redis_url: Redis connection URL; None selects the in-memory backend
        redis_client: Pre-built client (tests)
    """

    # TTL Tiers (in seconds)
    TTL_TIERS = {
        "hot": 300,
        "warm": 3600,
        "cold": 86400,
    }

    def __init__(self, redis_url: Optional[str] = None, redis_client: Optional[Redis] = None):
        self.logger = logging.getLogger(__name__)
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=5, recovery_timeout=60, expected_exception=RedisError
        )
        self.key_builder = CacheKeyBuilder()

        self._memory_lock = threading.Lock()
        self._memory_cache: Dict[str, Any] = {}
        self._memory_expiry: Dict[str, float] = {}

        self.redis: Optional[Redis] = redis_client
        if self.redis is None and redis_url:
            self._setup_redis_connection(redis_url)

        self._stats: Dict[str, int] = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "deletes": 0,
            "errors": 0,
        }

    def _setup_redis_connection(self, redis_url: str) -> None:
        """Setup Redis connection with fallback to in-memory cache."""
        try:
            client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_keepalive=True,
                socket_connect_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
            client.ping()
            self.redis = client
            logger.info("Connected to Redis")
        except (RedisError, ConnectionError) as e:
            logger.warning(f"Redis not available: {e}. Using in-memory fallback.")
            self.redis = None

    @property
    def backend(self) -> str:
        return "redis" if self.redis is not None else "memory"

    # Core Cache Operations

    @BaseService.measure_operation("cache_get")
    def get(self, key: str) -> Optional[Any]:
        """Read a value; a backend failure reads as a miss."""
        try:
            value = self._read(key)
        except (RedisError, ValueError) as e:
            logger.error(f"Cache get error for key {key}: {e}")
            self._stats["errors"] += 1
            return None

        self._stats["hits" if value is not None else "misses"] += 1
        return value

    @BaseService.measure_operation("cache_get_or_raise")
    def get_or_raise(self, key: str) -> Optional[Any]:
        """
        Read a value, telling a miss apart from a failure.

        For reads that must fail closed, such as the revoked-token check.

        Raises:
            ServiceException: Redis failed or the circuit is open
        """
        try:
            value = self._read(key, fail_closed=True)
        except (RedisError, ValueError) as e:
            logger.error(f"Cache get error for key {key}: {e}")
            self._stats["errors"] += 1
            raise ServiceException(
                "Cache is unavailable", code="CACHE_UNAVAILABLE", details={"key": key}
            ) from e

        self._stats["hits" if value is not None else "misses"] += 1
        return value

    def _read(self, key: str, fail_closed: bool = False) -> Optional[Any]:
        redis_client = self.redis
        if redis_client is None:
            return self._memory_get(key)
        value = self.circuit_breaker.call(redis_client.get, key, fail_closed=fail_closed)
        return json.loads(value) if value is not None else None

    @BaseService.measure_operation("cache_set")
    def set(self, key: str, value: Any, ttl: Optional[int] = None, tier: str = "warm") -> bool:
        if ttl is None:
            ttl = self.TTL_TIERS.get(tier, self.TTL_TIERS["warm"])
        redis_client = self.redis

        try:
            serialized = json.dumps(value, default=str)
            if redis_client is not None:
                result = self.circuit_breaker.call(redis_client.setex, key, ttl, serialized)
                stored = bool(result)
            else:
                with self._memory_lock:
                    # Round-trip so callers never share mutable state with the cache
                    self._memory_cache[key] = json.loads(serialized)
                    self._memory_expiry[key] = time_module.monotonic() + ttl
                stored = True
        except (RedisError, TypeError, ValueError) as e:
            logger.error(f"Cache set error for key {key}: {e}")
            self._stats["errors"] += 1
            return False

        if stored:
            self._stats["sets"] += 1
        return stored

    @BaseService.measure_operation("cache_delete")
    def delete(self, key: str) -> bool:
        redis_client = self.redis
        try:
            if redis_client is not None:
                result = bool(self.circuit_breaker.call(redis_client.delete, key))
            else:
                with self._memory_lock:
                    result = key in self._memory_cache
                    self._memory_cache.pop(key, None)
                    self._memory_expiry.pop(key, None)
        except RedisError as e:
            logger.error(f"Cache delete error for key {key}: {e}")
            self._stats["errors"] += 1
            return False

        if result:
            self._stats["deletes"] += 1
        return result

    def get_stats(self) -> Dict[str, Any]:
        """Counters and circuit state for the health endpoint."""
        total = self._stats["hits"] + self._stats["misses"]
        return {
            **self._stats,
            "backend": self.backend,
            "hit_rate": self._stats["hits"] / total if total else 0.0,
            "circuit_state": self.circuit_breaker.state.value,
        }

    def _memory_get(self, key: str) -> Optional[Any]:
        with self._memory_lock:
            if key not in self._memory_cache:
                return None
            if time_module.monotonic() >= self._memory_expiry.get(key, float("inf")):
                del self._memory_cache[key]
                self._memory_expiry.pop(key, None)
                return None
            return json.loads(json.dumps(self._memory_cache[key]))
