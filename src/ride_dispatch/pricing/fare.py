"""Tier policy table and deterministic fare breakdown."""

import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Tier(str, Enum):
    """Service class with its own pricing policy."""

    ECONOMY = "economy"
    PREMIUM = "premium"
    LUXURY = "luxury"


class TierConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_fare: int = Field(ge=0)
    cost_per_km: int = Field(ge=0)
    min_surge: float = Field(ge=1.0)
    max_surge: float = Field(ge=1.0)

    def clamp_surge(self, surge_factor: float) -> float:
        return max(self.min_surge, min(surge_factor, self.max_surge))


TIERS: dict[Tier, TierConfig] = {
    Tier.ECONOMY: TierConfig(base_fare=50, cost_per_km=12, min_surge=1.0, max_surge=3.0),
    Tier.PREMIUM: TierConfig(base_fare=100, cost_per_km=20, min_surge=1.0, max_surge=3.5),
    Tier.LUXURY: TierConfig(base_fare=200, cost_per_km=35, min_surge=1.0, max_surge=4.0),
}


class FareBreakdown(BaseModel):
    """Detailed breakdown of fare components.

    Immutable and fully re-derivable from (distance_km, tier, surge_factor).
    """

    model_config = ConfigDict(frozen=True)

    base_fare: int = Field(ge=0)
    distance_fare: int = Field(ge=0)
    surge_fare: int = Field(ge=0)
    total_fare: int = Field(ge=0)
    surge_factor: float = Field(ge=1.0)


def round_half_up(amount: float) -> int:
    """Round a non-negative amount to the nearest unit, halves going up.

    4.5 becomes 5, where the builtin round() would give 4.
    """
    return math.floor(amount + 0.5)


def calculate_fare(
    distance_km: float, tier: Tier | str, surge_factor: float = 1.0
) -> FareBreakdown:
    """Price a trip.

    Rounding happens per component so that the total is always the exact sum
    of the parts shown on the receipt.
    """
    if distance_km < 0:
        raise ValueError("Distance must be non-negative")
    if surge_factor < 1.0:
        raise ValueError("Surge factor must be >= 1.0")

    config = TIERS[Tier(tier)]

    base_fare = config.base_fare
    distance_fare = round_half_up(distance_km * config.cost_per_km)
    surge_fare = round_half_up((base_fare + distance_fare) * (surge_factor - 1.0))

    return FareBreakdown(
        base_fare=base_fare,
        distance_fare=distance_fare,
        surge_fare=surge_fare,
        total_fare=base_fare + distance_fare + surge_fare,
        surge_factor=surge_factor,
    )
