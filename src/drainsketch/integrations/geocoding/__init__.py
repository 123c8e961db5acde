"""
Mapbox address resolver integration.

Turns free-text addresses into candidate addresses with coordinates so a new
project can be centred on its site.
"""

from .client import MapboxGeocoder, MapboxGeocoderConfig
from .parser import MapboxResponseParser

__all__ = ["MapboxGeocoder", "MapboxGeocoderConfig", "MapboxResponseParser"]
