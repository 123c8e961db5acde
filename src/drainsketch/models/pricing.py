"""
Pydantic models for rate tables, promotional policy and cost summaries.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator


def as_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so instants always compare."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class PricingRates(BaseModel):
    """Rate table for the four priced line items."""

    hydroblox_per_lf: float = Field(..., ge=0, description="HydroBlox run rate per linear foot")
    parallel_per_lf: float = Field(..., ge=0, description="Parallel row rate per linear foot")
    transition_box: float = Field(..., ge=0, description="Flat rate per transition box")
    stormwater_box: float = Field(..., ge=0, description="Flat rate per stormwater box")


class PromoRateOverrides(BaseModel):
    """Promotional rates; any field left unset keeps the regular rate."""

    hydroblox_per_lf: Optional[float] = Field(None, ge=0)
    parallel_per_lf: Optional[float] = Field(None, ge=0)
    transition_box: Optional[float] = Field(None, ge=0)
    stormwater_box: Optional[float] = Field(None, ge=0)

    def apply(self, regular: PricingRates) -> PricingRates:
        """Merge the overrides over a regular rate table."""
        return regular.model_copy(update=self.model_dump(exclude_none=True))


class PromoPolicy(BaseModel):
    """
    Date-gated promotional pricing.

    The promotion is active for instants in ``[starts_at, cutoff)``; without a
    start it is active for every instant strictly before the cutoff.
    """

    starts_at: Optional[datetime] = Field(None, description="Start of the promo window (inclusive)")
    cutoff: datetime = Field(..., description="End of the promo window (exclusive)")
    overrides: PromoRateOverrides = Field(default_factory=PromoRateOverrides)

    @field_validator("starts_at", "cutoff")
    @classmethod
    def make_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_aware(v) if v is not None else None

    @model_validator(mode="after")
    def check_window(self) -> "PromoPolicy":
        if self.starts_at is not None and self.starts_at >= self.cutoff:
            raise ValueError("Promo start must be before the cutoff")
        return self

    def is_active(self, now: datetime) -> bool:
        """Whether promotional rates apply at the given instant."""
        now = as_aware(now)
        if self.starts_at is not None and now < self.starts_at:
            return False
        return now < self.cutoff


class LineItem(BaseModel):
    """One row of the itemised cost breakdown."""

    label: str = Field(..., description="Display name of the item")
    quantity: int = Field(..., ge=0)
    unit: Literal["LF", "ea"] = Field(..., description="Linear feet or each")
    rate: float = Field(..., ge=0)
    cost: int = Field(..., ge=0)

    @computed_field
    @property
    def detail(self) -> str:
        """Compact description, e.g. ``100 LF x $45``."""
        return f"{self.quantity} {self.unit} x ${self.rate:g}"

    def __str__(self) -> str:
        return f"{self.label}: {self.detail}"


class PricingSummary(BaseModel):
    """
    Itemised quote for a feature collection.

    ``total`` is always the sum of the four item costs. ``savings`` is only
    positive while a promotion is active.
    """

    hydroblox_lf: int = Field(0, ge=0, description="Total HydroBlox run length in feet")
    parallel_lf: int = Field(0, ge=0, description="Total parallel row length in feet")
    transition_count: int = Field(0, ge=0)
    stormwater_count: int = Field(0, ge=0)

    hydroblox_cost: int = Field(0, ge=0)
    parallel_cost: int = Field(0, ge=0)
    transition_cost: int = Field(0, ge=0)
    stormwater_cost: int = Field(0, ge=0)

    total: int = Field(0, ge=0)
    regular_total: int = Field(0, ge=0, description="Same quantities priced at regular rates")
    is_promo: bool = False
    savings: int = Field(0, ge=0)
    rates: PricingRates = Field(..., description="Rate table used for this quote")
    promo_ends_at: Optional[datetime] = Field(
        None, description="Promo cutoff, reported while the promo is active"
    )

    @computed_field
    @property
    def has_items(self) -> bool:
        """Whether any priced quantity is non-zero."""
        return any(
            (self.hydroblox_lf, self.parallel_lf, self.transition_count, self.stormwater_count)
        )

    def line_items(self) -> List[LineItem]:
        """Non-zero rows of the breakdown, in display order."""
        rows = [
            LineItem(label="HydroBlox Run", quantity=self.hydroblox_lf, unit="LF",
                     rate=self.rates.hydroblox_per_lf, cost=self.hydroblox_cost),
            LineItem(label="Parallel Row", quantity=self.parallel_lf, unit="LF",
                     rate=self.rates.parallel_per_lf, cost=self.parallel_cost),
            LineItem(label="Transition Box", quantity=self.transition_count, unit="ea",
                     rate=self.rates.transition_box, cost=self.transition_cost),
            LineItem(label="Stormwater Box", quantity=self.stormwater_count, unit="ea",
                     rate=self.rates.stormwater_box, cost=self.stormwater_cost),
        ]
        return [row for row in rows if row.quantity > 0]
