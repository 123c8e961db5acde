"""
Address lookup endpoints backed by the Mapbox geocoder.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from drainsketch.core.errors import ValidationError
from drainsketch.integrations.geocoding import MapboxGeocoder
from drainsketch.models.errors import ErrorResponse
from drainsketch.models.geocoding import AddressCandidate, ResolvedAddress

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/geocode", tags=["geocode"])

_geocoder: Optional[MapboxGeocoder] = None


def get_geocoder() -> MapboxGeocoder:
    """Shared geocoder, created on first use."""
    global _geocoder
    if _geocoder is None:
        _geocoder = MapboxGeocoder()
    return _geocoder


async def close_geocoder() -> None:
    global _geocoder
    if _geocoder is not None:
        await _geocoder.close()
        _geocoder = None


@router.get(
    "",
    response_model=List[AddressCandidate],
    responses={
        400: {"model": ErrorResponse, "description": "Address missing"},
        503: {"model": ErrorResponse, "description": "Geocoding service unavailable"},
    },
    summary="Search addresses",
)
async def search_addresses(
    address: Optional[str] = Query(None, description="Full or partial address text"),
    geocoder: MapboxGeocoder = Depends(get_geocoder),
) -> List[AddressCandidate]:
    if not address or not address.strip():
        raise ValidationError("Address required", field="address")
    return await geocoder.suggest(address)


@router.get(
    "/resolve/{candidate_id}",
    response_model=ResolvedAddress,
    responses={
        404: {"model": ErrorResponse, "description": "No matching address"},
        503: {"model": ErrorResponse, "description": "Geocoding service unavailable"},
    },
    summary="Resolve an address",
)
async def resolve_address(
    candidate_id: str,
    geocoder: MapboxGeocoder = Depends(get_geocoder),
) -> ResolvedAddress:
    return await geocoder.resolve(candidate_id)
