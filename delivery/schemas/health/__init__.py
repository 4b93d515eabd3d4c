"""Health check schemas."""

from delivery.schemas.health.dependency_health import DependencyHealth
from delivery.schemas.health.response.liveness_response import LivenessResponse
from delivery.schemas.health.response.readiness_response import ReadinessResponse

__all__ = ["DependencyHealth", "LivenessResponse", "ReadinessResponse"]
