"""
Pydantic models for address search results.
"""

from typing import Optional

from pydantic import BaseModel, Field


class AddressCandidate(BaseModel):
    """One suggestion returned for partial address text."""

    id: str = Field(..., description="Resolver-side candidate id")
    address: str = Field(..., description="Full formatted address")
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    relevance: Optional[float] = Field(None, ge=0, le=1, description="Match relevance score")


class ResolvedAddress(BaseModel):
    """A chosen address and its coordinates."""

    address: str
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    @classmethod
    def from_candidate(cls, candidate: AddressCandidate) -> "ResolvedAddress":
        return cls(address=candidate.address, lat=candidate.lat, lng=candidate.lng)
