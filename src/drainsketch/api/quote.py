"""
Quote endpoint: prices a feature collection without saving anything.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from drainsketch.api.projects import get_pricing_engine
from drainsketch.core.pricing import PricingEngine
from drainsketch.models.errors import ErrorResponse
from drainsketch.models.feature import FeatureCollection
from drainsketch.models.pricing import LineItem, PricingSummary

router = APIRouter(tags=["quote"])


class QuoteResponse(PricingSummary):
    """Pricing summary with its non-zero line items."""

    items: List[LineItem] = []


@router.post(
    "/quote",
    response_model=QuoteResponse,
    responses={422: {"model": ErrorResponse, "description": "Invalid features"}},
    summary="Price a design",
    description="Itemised cost for a GeoJSON feature collection; measurements are recomputed",
)
async def quote(
    design: FeatureCollection,
    at: Optional[datetime] = Query(None, description="Price as of this instant"),
    pricing: PricingEngine = Depends(get_pricing_engine),
) -> QuoteResponse:
    features = [f.remeasured() for f in design.features]
    summary = pricing.calculate(features, now=at)
    return QuoteResponse(**summary.model_dump(exclude={"has_items"}), items=summary.line_items())
