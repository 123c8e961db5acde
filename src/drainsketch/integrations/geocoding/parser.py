"""
Mapbox geocoding response parser.

Converts Mapbox ``mapbox.places`` feature collections into address candidates.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from drainsketch.models.geocoding import AddressCandidate

logger = logging.getLogger(__name__)


class MapboxResponseParser:
    """Parser for Mapbox forward-geocoding responses."""

    def parse_feature(self, feature: Dict[str, Any]) -> Optional[AddressCandidate]:
        """
        Parse one result feature.

        The position comes from ``center`` and falls back to a point geometry.

        Returns:
            AddressCandidate, or None if the feature is unusable
        """
        center = feature.get("center")
        if not center:
            geometry = feature.get("geometry") or {}
            if geometry.get("type") == "Point":
                center = geometry.get("coordinates")

        if not center or len(center) < 2:
            logger.warning(f"Skipping geocoding result without a position: {feature.get('id')}")
            return None

        address = feature.get("place_name") or feature.get("text")
        if not address:
            logger.warning(f"Skipping geocoding result without a name: {feature.get('id')}")
            return None

        try:
            return AddressCandidate(
                id=str(feature.get("id") or address),
                address=address,
                lng=center[0],
                lat=center[1],
                relevance=feature.get("relevance"),
            )
        except ValidationError as e:
            logger.warning(f"Skipping malformed geocoding result {feature.get('id')}: {e}")
            return None

    def parse_candidates(self, data: Dict[str, Any]) -> List[AddressCandidate]:
        """
        Parse a full response body.

        Args:
            data: Decoded JSON response

        Returns:
            Candidates in the resolver's relevance order
        """
        features = data.get("features")
        if not isinstance(features, list):
            logger.warning("Geocoding response has no feature list")
            return []

        candidates = []
        for feature in features:
            if not isinstance(feature, dict):
                continue
            candidate = self.parse_feature(feature)
            if candidate is not None:
                candidates.append(candidate)

        logger.debug(f"Parsed {len(candidates)} of {len(features)} geocoding results")
        return candidates
