"""
Pricing engine: turns a design's features into an itemised quote.

Only four element types are priced: HydroBlox runs and parallel rows by the
linear foot, transition and stormwater boxes by the unit. Every other type
contributes nothing. Promotional rates are selected by a date-gated policy.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from drainsketch.core.metrics import round_half_up
from drainsketch.models.feature import DesignFeature, ElementType
from drainsketch.models.pricing import PricingRates, PricingSummary, PromoPolicy

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _safe_length(value: Optional[float]) -> float:
    if value is None or not math.isfinite(value) or value < 0:
        return 0.0
    return float(value)


class PricingEngine:
    """
    Stateless quote calculator bound to a rate configuration.

    Args:
        regular: Regular rate table
        promo: Promotional policy, or None to always use regular rates
        clock: Source of the current instant
    """

    def __init__(
        self,
        regular: PricingRates,
        promo: Optional[PromoPolicy] = None,
        clock: Clock = utc_now,
    ):
        self.regular = regular
        self.promo = promo
        self.clock = clock

    @classmethod
    def from_settings(cls, settings=None) -> "PricingEngine":
        """Build an engine from application settings."""
        if settings is None:
            from drainsketch.core.config import settings

        return cls(regular=settings.regular_rates(), promo=settings.promo_policy())

    def is_promo_active(self, now: Optional[datetime] = None) -> bool:
        if self.promo is None:
            return False
        return self.promo.is_active(now if now is not None else self.clock())

    def active_rates(self, now: Optional[datetime] = None) -> PricingRates:
        """Rate table in effect at the given instant."""
        if self.is_promo_active(now):
            return self.promo.overrides.apply(self.regular)
        return self.regular

    def calculate(
        self,
        features: Iterable[DesignFeature],
        now: Optional[datetime] = None,
    ) -> PricingSummary:
        """
        Price a feature collection.

        Args:
            features: Design features to price
            now: Instant used for promo eligibility (defaults to the clock)

        Returns:
            PricingSummary with quantities, costs, totals and the rate table used
        """
        now = now if now is not None else self.clock()

        hydroblox_lf = 0.0
        parallel_lf = 0.0
        transition_count = 0
        stormwater_count = 0

        for feature in features:
            element_type = feature.element_type
            if element_type is ElementType.HYDROBLOX_RUN:
                hydroblox_lf += _safe_length(feature.length_ft)
            elif element_type is ElementType.PARALLEL_ROW:
                parallel_lf += _safe_length(feature.length_ft)
            elif element_type is ElementType.TRANSITION_BOX:
                transition_count += 1
            elif element_type is ElementType.STORMWATER_BOX:
                stormwater_count += 1

        quantities = (
            round_half_up(hydroblox_lf),
            round_half_up(parallel_lf),
            transition_count,
            stormwater_count,
        )

        promo_active = self.is_promo_active(now)
        rates = self.promo.overrides.apply(self.regular) if promo_active else self.regular

        costs = self._item_costs(quantities, rates)
        total = sum(costs)
        regular_total = sum(self._item_costs(quantities, self.regular)) if promo_active else total
        savings = max(0, regular_total - total) if promo_active else 0

        logger.debug(
            f"Priced design: total=${total} promo={promo_active} "
            f"hydroblox={quantities[0]}LF parallel={quantities[1]}LF "
            f"transition={transition_count} stormwater={stormwater_count}"
        )

        return PricingSummary(
            hydroblox_lf=quantities[0],
            parallel_lf=quantities[1],
            transition_count=transition_count,
            stormwater_count=stormwater_count,
            hydroblox_cost=costs[0],
            parallel_cost=costs[1],
            transition_cost=costs[2],
            stormwater_cost=costs[3],
            total=total,
            regular_total=regular_total,
            is_promo=promo_active,
            savings=savings,
            rates=rates,
            promo_ends_at=self.promo.cutoff if promo_active else None,
        )

    @staticmethod
    def _item_costs(quantities, rates: PricingRates):
        hydroblox_lf, parallel_lf, transition_count, stormwater_count = quantities
        return (
            round_half_up(hydroblox_lf * rates.hydroblox_per_lf),
            round_half_up(parallel_lf * rates.parallel_per_lf),
            round_half_up(transition_count * rates.transition_box),
            round_half_up(stormwater_count * rates.stormwater_box),
        )


def calculate(features: Iterable[DesignFeature], now: Optional[datetime] = None) -> PricingSummary:
    """Price features with the rates from the application settings."""
    return PricingEngine.from_settings().calculate(features, now=now)
