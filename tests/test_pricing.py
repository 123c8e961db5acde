"""
Tests for the pricing engine.
"""

from datetime import datetime, timezone

import pytest

from drainsketch.core.config import Settings
from drainsketch.core.pricing import PricingEngine
from drainsketch.models.feature import DesignFeature, ElementType
from drainsketch.models.pricing import PricingRates, PromoPolicy, PromoRateOverrides

LINE = {"type": "LineString", "coordinates": [[-80.927, 29.0258], [-80.927, 29.0268]]}
POINT = {"type": "Point", "coordinates": [-80.927, 29.0258]}
SQUARE = {
    "type": "Polygon",
    "coordinates": [[[0.0, 0.0], [0.001, 0.0], [0.001, 0.001], [0.0, 0.001], [0.0, 0.0]]],
}

REGULAR = PricingRates(hydroblox_per_lf=45, parallel_per_lf=35, transition_box=400, stormwater_box=750)
CUTOFF = datetime(2026, 4, 1, 4, 0, tzinfo=timezone.utc)
BEFORE_CUTOFF = datetime(2026, 3, 15, tzinfo=timezone.utc)
AFTER_CUTOFF = datetime(2026, 10, 19, tzinfo=timezone.utc)


def run(length_ft: int, element_type=ElementType.HYDROBLOX_RUN, feature_id="r") -> DesignFeature:
    """A line feature with a fixed length, bypassing measurement."""
    return DesignFeature.model_construct(
        id=feature_id, geometry=LINE, element_type=element_type, length_ft=length_ft
    )


def box(element_type: ElementType, feature_id: str) -> DesignFeature:
    return DesignFeature(id=feature_id, geometry=POINT, element_type=element_type)


@pytest.fixture
def engine() -> PricingEngine:
    promo = PromoPolicy(
        cutoff=CUTOFF,
        overrides=PromoRateOverrides(
            hydroblox_per_lf=40, parallel_per_lf=30, transition_box=350, stormwater_box=650
        ),
    )
    return PricingEngine(regular=REGULAR, promo=promo)


class TestScenarios:
    """Worked pricing scenarios."""

    def test_single_run_at_fifty_per_foot(self) -> None:
        rates = PricingRates(hydroblox_per_lf=50, parallel_per_lf=35, transition_box=400, stormwater_box=750)
        summary = PricingEngine(regular=rates).calculate([run(100)])

        assert summary.hydroblox_lf == 100
        assert summary.hydroblox_cost == 5000
        assert summary.total == 5000

    def test_two_transition_boxes(self) -> None:
        summary = PricingEngine(regular=REGULAR).calculate(
            [box(ElementType.TRANSITION_BOX, "t1"), box(ElementType.TRANSITION_BOX, "t2")]
        )
        assert summary.transition_count == 2
        assert summary.transition_cost == 800

    def test_empty_design(self, engine: PricingEngine) -> None:
        summary = engine.calculate([], now=AFTER_CUTOFF)

        assert summary.total == 0
        assert summary.regular_total == 0
        assert summary.savings == 0
        assert summary.has_items is False
        assert summary.line_items() == []


class TestAggregation:
    """Tests for quantity aggregation."""

    def test_mixed_design(self, engine: PricingEngine) -> None:
        features = [
            run(100, feature_id="r1"),
            run(50, feature_id="r2"),
            run(20, ElementType.PARALLEL_ROW, feature_id="p1"),
            box(ElementType.TRANSITION_BOX, "t1"),
            box(ElementType.STORMWATER_BOX, "s1"),
            box(ElementType.DOWNSPOUT, "d1"),
            run(999, ElementType.FLOW_ARROW, feature_id="f1"),
            run(999, ElementType.EXISTING_PIPE, feature_id="x1"),
            DesignFeature(id="w1", geometry=SQUARE, element_type=ElementType.STANDING_WATER),
        ]
        summary = engine.calculate(features, now=AFTER_CUTOFF)

        assert summary.hydroblox_lf == 150
        assert summary.parallel_lf == 20
        assert summary.transition_count == 1
        assert summary.stormwater_count == 1
        assert summary.hydroblox_cost == 150 * 45
        assert summary.parallel_cost == 20 * 35
        assert summary.total == 6750 + 700 + 400 + 750

    def test_total_is_sum_of_items(self, engine: PricingEngine) -> None:
        features = [run(33, feature_id="r"), run(17, ElementType.PARALLEL_ROW, feature_id="p"),
                    box(ElementType.STORMWATER_BOX, "s")]
        for now in (BEFORE_CUTOFF, AFTER_CUTOFF):
            s = engine.calculate(features, now=now)
            assert s.total == s.hydroblox_cost + s.parallel_cost + s.transition_cost + s.stormwater_cost

    def test_costs_round_to_whole_units(self) -> None:
        rates = PricingRates(hydroblox_per_lf=12.5, parallel_per_lf=0, transition_box=0, stormwater_box=0)
        summary = PricingEngine(regular=rates).calculate([run(3)])
        assert summary.hydroblox_cost == 38

    def test_bad_lengths_count_as_zero(self) -> None:
        nan_run = DesignFeature.model_construct(
            id="n", geometry=None, element_type=ElementType.HYDROBLOX_RUN, length_ft=float("nan")
        )
        negative_run = DesignFeature.model_construct(
            id="m", geometry=None, element_type=ElementType.HYDROBLOX_RUN, length_ft=-10
        )
        summary = PricingEngine(regular=REGULAR).calculate([nan_run, negative_run, run(10)])
        assert summary.hydroblox_lf == 10
        assert summary.total == 450


class TestPromo:
    """Tests for date-gated promotional pricing."""

    def test_promo_rates_before_cutoff(self, engine: PricingEngine) -> None:
        summary = engine.calculate([run(100)], now=BEFORE_CUTOFF)

        assert summary.is_promo is True
        assert summary.rates.hydroblox_per_lf == 40
        assert summary.total == 4000
        assert summary.regular_total == 4500
        assert summary.savings == 500
        assert summary.promo_ends_at == CUTOFF

    def test_inactive_promo_reports_regular_rates(self, engine: PricingEngine) -> None:
        summary = engine.calculate([run(100)], now=AFTER_CUTOFF)

        assert summary.is_promo is False
        assert summary.savings == 0
        assert summary.rates == REGULAR
        assert summary.total == summary.regular_total == 4500
        assert summary.promo_ends_at is None

    def test_cutoff_instant_is_exclusive(self, engine: PricingEngine) -> None:
        assert engine.calculate([run(1)], now=CUTOFF).is_promo is False

    def test_partial_overrides_discount_only_those_items(self) -> None:
        engine = PricingEngine(
            regular=REGULAR,
            promo=PromoPolicy(cutoff=CUTOFF, overrides=PromoRateOverrides(hydroblox_per_lf=40)),
        )
        summary = engine.calculate(
            [run(10), box(ElementType.TRANSITION_BOX, "t")], now=BEFORE_CUTOFF
        )
        assert summary.rates.transition_box == 400
        assert summary.transition_cost == 400
        assert summary.savings == 50

    def test_clock_used_when_no_instant_given(self) -> None:
        engine = PricingEngine(
            regular=REGULAR,
            promo=PromoPolicy(cutoff=CUTOFF, overrides=PromoRateOverrides(hydroblox_per_lf=40)),
            clock=lambda: BEFORE_CUTOFF,
        )
        assert engine.calculate([run(10)]).is_promo is True
        assert engine.active_rates().hydroblox_per_lf == 40

    def test_no_promo_policy(self) -> None:
        engine = PricingEngine(regular=REGULAR, promo=None)
        assert engine.calculate([run(10)], now=BEFORE_CUTOFF).is_promo is False

    def test_engine_from_settings(self) -> None:
        settings = Settings(promo_parallel_rate_per_lf=None)
        engine = PricingEngine.from_settings(settings)

        summary = engine.calculate([run(10, ElementType.PARALLEL_ROW)], now=BEFORE_CUTOFF)
        assert summary.is_promo is True
        assert summary.rates.hydroblox_per_lf == 40
        assert summary.rates.parallel_per_lf == 35

        assert engine.calculate([run(10)], now=AFTER_CUTOFF).is_promo is False

    def test_promo_disabled_in_settings(self) -> None:
        engine = PricingEngine.from_settings(Settings(promo_enabled=False))
        assert engine.promo is None


class TestLineItems:
    """Tests for the itemised breakdown."""

    def test_only_non_zero_items(self) -> None:
        summary = PricingEngine(regular=REGULAR).calculate(
            [run(100), box(ElementType.STORMWATER_BOX, "s")]
        )
        items = summary.line_items()

        assert [i.label for i in items] == ["HydroBlox Run", "Stormwater Box"]
        assert str(items[0]) == "HydroBlox Run: 100 LF x $45"
        assert items[1].detail == "1 ea x $750"
        assert items[1].cost == 750
        assert summary.has_items is True
