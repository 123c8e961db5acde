"""
Mapbox forward-geocoding client.

Implements the address resolver with:
- Country-restricted address autocomplete
- Retry with exponential backoff on transport failures
- Bounded candidate cache so a chosen suggestion resolves without another
  request, even after other searches on the same client
- Access-token redaction in logs
"""

import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, Field

from drainsketch.core.errors import AddressNotFoundError, ConfigurationError, GeocodingError
from drainsketch.core.retry import async_retry
from drainsketch.integrations.geocoding.parser import MapboxResponseParser
from drainsketch.models.geocoding import AddressCandidate, ResolvedAddress
from drainsketch.utils.logging import redact_sensitive

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 3


class MapboxGeocoderConfig(BaseModel):
    """Configuration for the Mapbox geocoding client."""

    base_url: str = Field(
        default="https://api.mapbox.com/geocoding/v5/mapbox.places",
        description="Base URL of the forward-geocoding endpoint",
    )
    access_token: Optional[str] = Field(None, description="Mapbox access token")
    country: str = Field(default="US", description="ISO country filter")
    types: str = Field(default="address", description="Result feature types")
    limit: int = Field(default=5, ge=1, le=10, description="Maximum suggestions")
    timeout: float = Field(default=10.0, ge=1.0, le=60.0, description="Request timeout in seconds")
    max_retries: int = Field(default=2, ge=0, le=10, description="Retries on transport failure")
    retry_backoff: float = Field(default=0.5, ge=0, description="Initial retry delay in seconds")
    candidate_cache_size: int = Field(
        default=512, ge=1, description="Most recent suggestions kept for resolving by id"
    )

    @classmethod
    def from_settings(cls) -> "MapboxGeocoderConfig":
        from drainsketch.core.config import settings

        return cls(
            base_url=settings.geocoding_base_url,
            access_token=settings.mapbox_token,
            country=settings.geocoding_country,
            timeout=settings.geocoding_timeout_seconds,
        )


class MapboxGeocoder:
    """
    Address resolver backed by the Mapbox geocoding API.

    ``suggest`` returns candidates for partial text; ``resolve`` turns a
    candidate id into an address with coordinates.
    """

    def __init__(
        self,
        config: Optional[MapboxGeocoderConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize the geocoder.

        Args:
            config: Client configuration (defaults to application settings)
            client: HTTP client to use instead of a private one
        """
        self.config = config or MapboxGeocoderConfig.from_settings()
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.timeout),
            follow_redirects=True,
        )
        self.parser = MapboxResponseParser()
        self._candidates: "OrderedDict[str, AddressCandidate]" = OrderedDict()
        self._fetch = async_retry(
            max_attempts=self.config.max_retries + 1,
            base_delay=self.config.retry_backoff,
            retryable_exceptions=(httpx.TransportError,),
        )(self._fetch_once)

        logger.info(f"Mapbox geocoder initialized with base URL: {self.config.base_url}")

    async def __aenter__(self) -> "MapboxGeocoder":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    def _build_url(self, text: str) -> str:
        return f"{self.config.base_url}/{quote(text, safe='')}.json"

    async def _fetch_once(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        response = await self.client.get(url, params=params)
        response.raise_for_status()
        return response.json()

    async def _query(self, text: str, autocomplete: bool) -> List[AddressCandidate]:
        if not self.config.access_token:
            raise ConfigurationError(
                "Mapbox access token is not configured",
                config_key="DRAINSKETCH_MAPBOX_TOKEN",
            )

        url = self._build_url(text)
        params = {
            "access_token": self.config.access_token,
            "country": self.config.country,
            "types": self.config.types,
            "autocomplete": "true" if autocomplete else "false",
            "limit": self.config.limit,
        }
        logger.debug(f"Geocoding request: {url} params={redact_sensitive(params)}")

        try:
            data = await self._fetch(url, params)
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Geocoding failed with HTTP {e.response.status_code}: "
                f"{redact_sensitive(str(e.request.url))}"
            )
            raise GeocodingError(
                f"Address lookup failed with status {e.response.status_code}",
                query=text,
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Geocoding request failed: {redact_sensitive(str(e))}")
            raise GeocodingError("Address lookup service unreachable", query=text) from e
        except ValueError as e:
            logger.error(f"Geocoding response was not valid JSON: {e}")
            raise GeocodingError("Address lookup returned an invalid response", query=text) from e

        return self.parser.parse_candidates(data)

    async def suggest(self, text: str) -> List[AddressCandidate]:
        """
        Suggest addresses for partial text.

        Text shorter than three characters yields no candidates.

        Raises:
            ConfigurationError: If no access token is configured
            GeocodingError: If the lookup fails
        """
        text = (text or "").strip()
        if len(text) < MIN_QUERY_LENGTH:
            return []

        candidates = await self._query(text, autocomplete=True)
        self._remember(candidates)
        return candidates

    def _remember(self, candidates: List[AddressCandidate]) -> None:
        for candidate in candidates:
            self._candidates[candidate.id] = candidate
            self._candidates.move_to_end(candidate.id)
        while len(self._candidates) > self.config.candidate_cache_size:
            self._candidates.popitem(last=False)

    async def resolve(self, candidate_id: str) -> ResolvedAddress:
        """
        Resolve a candidate to an address with coordinates.

        Recently suggested candidates resolve locally; anything else is looked
        up as address text and the best match returned.

        Raises:
            AddressNotFoundError: If nothing matches
            GeocodingError: If the lookup fails
        """
        cached = self._candidates.get(candidate_id)
        if cached is not None:
            return ResolvedAddress.from_candidate(cached)

        text = (candidate_id or "").strip()
        if not text:
            raise AddressNotFoundError(candidate_id or "")

        candidates = await self._query(text, autocomplete=False)
        if not candidates:
            raise AddressNotFoundError(text)

        logger.info(f"Resolved {text!r} to {candidates[0].address!r}")
        return ResolvedAddress.from_candidate(candidates[0])

    async def geocode(self, address: str) -> ResolvedAddress:
        """Forward-geocode full address text to its best match."""
        return await self.resolve(address)
