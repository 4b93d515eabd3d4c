"""Engine configuration and per-type delivery policies."""

from delivery.config.engine_config import (
    POLICY_TABLE,
    DeliveryPolicy,
    EngineConfig,
    load_engine_config,
    requires_fallback,
)

__all__ = [
    "POLICY_TABLE",
    "DeliveryPolicy",
    "EngineConfig",
    "load_engine_config",
    "requires_fallback",
]
