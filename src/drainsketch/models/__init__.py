"""
Data models and schemas.
"""

from .feature import (
    ELEMENT_CATALOGUE,
    DesignFeature,
    ElementGroup,
    ElementSpec,
    ElementType,
    FeatureCollection,
    FeatureStatus,
    GeometryKind,
    LineGeometry,
    PointGeometry,
    PolygonGeometry,
)
from .geocoding import AddressCandidate, ResolvedAddress
from .pricing import LineItem, PricingRates, PricingSummary, PromoPolicy, PromoRateOverrides
from .project import (
    ProjectDetails,
    ProjectRecord,
    ProjectStatus,
    ProjectSummary,
    ProjectTotals,
    StatusUpdate,
)

__all__ = [
    "ELEMENT_CATALOGUE",
    "DesignFeature",
    "ElementGroup",
    "ElementSpec",
    "ElementType",
    "FeatureCollection",
    "FeatureStatus",
    "GeometryKind",
    "LineGeometry",
    "PointGeometry",
    "PolygonGeometry",
    "AddressCandidate",
    "ResolvedAddress",
    "LineItem",
    "PricingRates",
    "PricingSummary",
    "PromoPolicy",
    "PromoRateOverrides",
    "ProjectDetails",
    "ProjectRecord",
    "ProjectStatus",
    "ProjectSummary",
    "ProjectTotals",
    "StatusUpdate",
]
