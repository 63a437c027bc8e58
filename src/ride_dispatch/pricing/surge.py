import logging

from .demand_metrics import DemandMetricsStore
from .fare import TIERS, Tier

logger = logging.getLogger(__name__)

NO_SURGE = 1.0


class SurgePricingCalculator:
    """Derives a ride's surge factor from the current demand/supply ratio."""

    def __init__(self, metrics: DemandMetricsStore) -> None:
        self.metrics = metrics

    def calculate_surge_factor(self, tier: Tier | str = Tier.ECONOMY) -> float:
        """Surge factor for a new ride, clamped to the tier's limits.

        Never raises: if demand metrics cannot be read the ride is priced
        without surge.
        """
        try:
            config = TIERS[Tier(tier)]
            snapshot = self.metrics.snapshot()
        except Exception:
            logger.warning("Demand metrics unavailable, pricing without surge", exc_info=True)
            return NO_SURGE

        ratio = snapshot.pending_ride_count / max(snapshot.available_driver_count, 1)
        surge_factor = config.clamp_surge(self._calculate_multiplier(ratio))

        logger.info(
            "Surge factor calculated: tier=%s pending=%d available=%d ratio=%.2f surge=%.1f",
            Tier(tier).value,
            snapshot.pending_ride_count,
            snapshot.available_driver_count,
            ratio,
            surge_factor,
        )
        return surge_factor

    def _calculate_multiplier(self, ratio: float) -> float:
        if ratio > 2.0:
            return 3.0
        elif ratio > 1.0:
            return 2.0
        elif ratio > 0.5:
            return 1.5
        else:
            return NO_SURGE
