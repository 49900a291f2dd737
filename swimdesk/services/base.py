# swimdesk/services/base.py
"""
Base Service Pattern for SwimDesk

Provides common functionality for all service classes including:
- Transaction management over the active DataStore
- Logging
- Query cache invalidation
- Performance monitoring
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, Optional, TypeVar, cast

from ..core.exceptions import RepositoryException, ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.contracts import DataStore

if TYPE_CHECKING:
    from .query_cache import QueryCache

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


class BaseService:
    """
    Base class for all service layer components.

    Provides common patterns for:
    - Storage access through a DataStore
    - Transaction handling
    - Query cache invalidation
    - Performance monitoring
    """

    # Class-level metrics storage
    _class_metrics: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def __init__(self, store: DataStore, cache: Optional["QueryCache"] = None):
        """
        Initialize base service.

        Args:
            store: Active DataStore
            cache: Optional QueryCache to invalidate after writes
        """
        self.store = store
        self.cache = cache
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[DataStore]:
        """
        Context manager for a storage unit of work.

        Usage:
            with self.transaction():
                self.store.purchases.create(purchase)
                self.store.users.increment_credits(user_id, 5)

        Domain exceptions propagate untouched; storage failures surface as
        ServiceException.
        """
        try:
            with self.store.transaction():
                yield self.store
            self.logger.debug("Transaction committed successfully")
        except RepositoryException as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            raise ServiceException(f"Storage operation failed: {str(e)}") from e

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator to measure operation performance.

        Usage:
            @BaseService.measure_operation("enroll")
            def enroll(self, session_id, user_id):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
                start_time = time.time()
                success = False
                error_type = None

                try:
                    result = func(self, *args, **kwargs)
                    success = True
                    return result
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    elapsed = time.time() - start_time

                    if hasattr(self, "_record_metric"):
                        self._record_metric(operation_name, elapsed, success)

                    if elapsed > SLOW_OPERATION_SECONDS and hasattr(self, "logger"):
                        self.logger.warning(
                            f"Slow operation detected: {operation_name} took {elapsed:.2f}s"
                        )

                    prometheus_metrics.record_service_operation(
                        service=self.__class__.__name__,
                        operation=operation_name,
                        duration=elapsed,
                        status="success" if success else "error",
                        error_type=error_type,
                    )

            return cast(F, wrapper)

        return decorator

    def invalidate_cache(self, *keys: str) -> None:
        """
        Invalidate specific query keys.

        Args:
            *keys: Query keys to invalidate
        """
        if not self.cache:
            return

        for key in keys:
            self.cache.invalidate(key)
            self.logger.debug(f"Invalidated query key: {key}")

    def invalidate_pattern(self, pattern: str) -> None:
        """
        Invalidate all query keys matching a glob pattern.

        Args:
            pattern: Key pattern (e.g., "instructor:*")
        """
        if not self.cache:
            return

        count = self.cache.invalidate_pattern(pattern)
        self.logger.debug(f"Invalidated {count} keys matching pattern: {pattern}")

    def cached_query(self, key: str, loader: Callable[[], Any]) -> Any:
        """
        Serve ``key`` from the query cache, loading through ``loader`` on a miss.

        Inside an open transaction a miss is loaded privately: the read may see
        uncommitted writes, and waiting on another thread's load while holding
        storage locks can stall both threads.
        """
        if not self.cache:
            return loader()
        return self.cache.fetch(key, loader, share=not self.store.in_transaction())

    def get_metrics(self) -> Dict[str, Dict[str, Any]]:
        """Per-operation timings recorded for this service class."""
        metrics = BaseService._class_metrics.get(self.__class__.__name__, {})
        result = {}
        for operation, data in metrics.items():
            count = data["count"]
            result[operation] = {
                **data,
                "avg_time": data["total_time"] / count if count else 0.0,
                "success_rate": data["success_count"] / count if count else 0.0,
            }
        return result

    def _record_metric(self, operation: str, elapsed: float, success: bool) -> None:
        """
        Record performance metrics.

        Args:
            operation: Operation name
            elapsed: Time taken in seconds
            success: Whether operation succeeded
        """
        class_name = self.__class__.__name__
        metrics = BaseService._class_metrics.setdefault(class_name, {})

        if operation not in metrics:
            metrics[operation] = {
                "count": 0,
                "total_time": 0.0,
                "success_count": 0,
                "failure_count": 0,
                "min_time": float("inf"),
                "max_time": 0.0,
            }

        metric_data = metrics[operation]
        metric_data["count"] += 1
        metric_data["total_time"] += elapsed
        metric_data["min_time"] = min(metric_data["min_time"], elapsed)
        metric_data["max_time"] = max(metric_data["max_time"], elapsed)

        if success:
            metric_data["success_count"] += 1
        else:
            metric_data["failure_count"] += 1
