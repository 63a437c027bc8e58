"""Fare computation and demand-based surge pricing."""

from .demand_metrics import (
    DemandMetricsStore,
    DemandSnapshot,
    InMemoryDemandMetrics,
    RedisDemandMetrics,
)
from .fare import TIERS, FareBreakdown, Tier, TierConfig, calculate_fare
from .surge import NO_SURGE, SurgePricingCalculator

__all__ = [
    "DemandMetricsStore",
    "DemandSnapshot",
    "FareBreakdown",
    "InMemoryDemandMetrics",
    "NO_SURGE",
    "RedisDemandMetrics",
    "SurgePricingCalculator",
    "TIERS",
    "Tier",
    "TierConfig",
    "calculate_fare",
]
