"""Liveness and readiness checks for the delivery engine."""

import logging
import time
from collections.abc import Callable

from django.db import connection
from django.db.utils import OperationalError

import django_rq

from delivery.enums import HealthStatus
from delivery.schemas.health import (
    DependencyHealth,
    LivenessResponse,
    ReadinessResponse,
)

logger = logging.getLogger(__name__)


class HealthService:
    """Checks the store and the job queue, caching each result briefly."""

    def __init__(self, cache_ttl_seconds: float = 5.0, queue_name: str = "default"):
        """Initialize the health service.

        Args:
            cache_ttl_seconds: Time to live for cached dependency results
            queue_name: django-rq queue whose Redis connection is checked
        """
        self.cache_ttl_seconds = cache_ttl_seconds
        self.queue_name = queue_name
        self._cache: dict[str, tuple[float, DependencyHealth]] = {}

    def get_liveness_status(self) -> LivenessResponse:
        return LivenessResponse(status="alive")

    def get_readiness_status(self) -> ReadinessResponse:
        """Report readiness with the health of each dependency.

        The service stays ready while a dependency is down; the response is
        flagged degraded so submissions can be retried by the caller.
        """
        dependencies = {
            "database": self.check_database_health(),
            "redis": self.check_redis_health(),
        }
        degraded = not all(dep.healthy for dep in dependencies.values())
        return ReadinessResponse(
            ready=True,
            status="degraded" if degraded else "ready",
            degraded=degraded,
            dependencies=dependencies,
        )

    def check_database_health(self) -> DependencyHealth:
        """Validate the database connection without running a query."""
        return self._cached("database", self._probe_database)

    def check_redis_health(self) -> DependencyHealth:
        """Ping the Redis server backing the dispatch queue."""
        return self._cached("redis", self._probe_redis)

    def clear_cache(self) -> None:
        self._cache.clear()

    def _cached(
        self, name: str, probe: Callable[[], DependencyHealth]
    ) -> DependencyHealth:
        now = time.time()
        cached = self._cache.get(name)
        if cached is not None and now - cached[0] < self.cache_ttl_seconds:
            return cached[1]
        health = probe()
        self._cache[name] = (now, health)
        return health

    def _probe_database(self) -> DependencyHealth:
        start_time = time.perf_counter()
        try:
            connection.ensure_connection()
        except OperationalError as e:
            logger.warning(f"Database health check failed: {e}")
            return DependencyHealth(
                healthy=False,
                status=HealthStatus.UNHEALTHY,
                message=f"Database connection failed: {e!s}",
                response_time_ms=_elapsed_ms(start_time),
            )
        except Exception as e:
            logger.error(f"Unexpected error checking database: {e}")
            return DependencyHealth(
                healthy=False,
                status=HealthStatus.ERROR,
                message=f"Unexpected error checking database: {e!s}",
                response_time_ms=_elapsed_ms(start_time),
            )
        return DependencyHealth(
            healthy=True,
            status=HealthStatus.HEALTHY,
            message="Database connection successful",
            response_time_ms=_elapsed_ms(start_time),
        )

    def _probe_redis(self) -> DependencyHealth:
        start_time = time.perf_counter()
        try:
            django_rq.get_connection(self.queue_name).ping()
        except Exception as e:
            logger.warning(f"Redis health check failed: {e}")
            return DependencyHealth(
                healthy=False,
                status=HealthStatus.ERROR,
                message=f"Redis connection failed: {e!s}",
                response_time_ms=_elapsed_ms(start_time),
            )
        return DependencyHealth(
            healthy=True,
            status=HealthStatus.HEALTHY,
            message="Redis connection successful",
            response_time_ms=_elapsed_ms(start_time),
        )


def _elapsed_ms(start_time: float) -> float:
    return (time.perf_counter() - start_time) * 1000


# Global health service instance
health_service = HealthService()
