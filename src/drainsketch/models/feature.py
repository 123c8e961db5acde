"""
Pydantic models for design features.

A design feature is one placed drainage element (a run, a box, a flow marker,
a piece of existing infrastructure) with its geometry and typed properties.
Features serialise to and from GeoJSON ``Feature`` objects with camelCase
property names.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_serializer,
    model_validator,
)
from pydantic.alias_generators import to_camel
from shapely.geometry import LineString, Point, Polygon

from drainsketch.core import metrics


FeatureId = Union[int, str]


class ElementType(str, Enum):
    """Closed set of design element types."""

    HYDROBLOX_RUN = "hydroblox-run"
    PARALLEL_ROW = "parallel-row"
    TRANSITION_BOX = "transition-box"
    STORMWATER_BOX = "stormwater-box"
    FLOW_ARROW = "flow-arrow"
    STANDING_WATER = "standing-water"
    PROBLEM_AREA = "problem-area"
    EXISTING_SWALE = "existing-swale"
    EXISTING_FRENCH_DRAIN = "existing-french-drain"
    EXISTING_PIPE = "existing-pipe"
    DOWNSPOUT = "downspout"


class ElementGroup(str, Enum):
    """Display groups used by the tool palette and legend."""

    GENERAL = "general"
    HYDROBLOX = "hydroblox"
    WATER = "water"
    EXISTING = "existing"


class GeometryKind(str, Enum):
    """Geometry kinds, named after their GeoJSON types."""

    LINE = "LineString"
    POINT = "Point"
    POLYGON = "Polygon"


class FeatureStatus(str, Enum):
    """Condition of a piece of existing drainage infrastructure."""

    WORKING = "working"
    FAILED = "failed"

    def toggled(self) -> "FeatureStatus":
        """Return the opposite status."""
        if self is FeatureStatus.WORKING:
            return FeatureStatus.FAILED
        return FeatureStatus.WORKING


@dataclass(frozen=True)
class ElementSpec:
    """
    Static description of an element type.

    Attributes:
        element_type: The element type described
        display_name: Name shown in the tool palette and cost panel
        short_label: Compact label drawn on the map
        group: Display group
        geometry_kind: Geometry every feature of this type carries
        click_to_place: Placed with a single click rather than drawn
        tracks_status: Carries a working/failed status
        unit_price: Flat price stamped on placed units, if any
    """

    element_type: ElementType
    display_name: str
    short_label: str
    group: ElementGroup
    geometry_kind: GeometryKind
    click_to_place: bool = False
    tracks_status: bool = False
    unit_price: Optional[float] = None


ELEMENT_CATALOGUE: Dict[ElementType, ElementSpec] = {
    spec.element_type: spec
    for spec in (
        ElementSpec(
            ElementType.HYDROBLOX_RUN, "HydroBlox Run", "HydroBlox",
            ElementGroup.HYDROBLOX, GeometryKind.LINE,
        ),
        ElementSpec(
            ElementType.PARALLEL_ROW, "Parallel Row", "Parallel",
            ElementGroup.HYDROBLOX, GeometryKind.LINE,
        ),
        ElementSpec(
            ElementType.TRANSITION_BOX, "Transition Box", "T-Box",
            ElementGroup.HYDROBLOX, GeometryKind.POINT,
            click_to_place=True, unit_price=400.0,
        ),
        ElementSpec(
            ElementType.STORMWATER_BOX, "Stormwater Box", "Storm",
            ElementGroup.HYDROBLOX, GeometryKind.POINT,
            click_to_place=True, unit_price=750.0,
        ),
        ElementSpec(
            ElementType.FLOW_ARROW, "Flow Arrow", "Flow",
            ElementGroup.WATER, GeometryKind.LINE,
        ),
        ElementSpec(
            ElementType.STANDING_WATER, "Standing Water", "Water",
            ElementGroup.WATER, GeometryKind.POLYGON,
        ),
        ElementSpec(
            ElementType.PROBLEM_AREA, "Problem Area", "Problem",
            ElementGroup.WATER, GeometryKind.POLYGON,
        ),
        ElementSpec(
            ElementType.EXISTING_SWALE, "Existing Swale", "Swale",
            ElementGroup.EXISTING, GeometryKind.LINE, tracks_status=True,
        ),
        ElementSpec(
            ElementType.EXISTING_FRENCH_DRAIN, "French Drain", "French",
            ElementGroup.EXISTING, GeometryKind.LINE, tracks_status=True,
        ),
        ElementSpec(
            ElementType.EXISTING_PIPE, "Pipe", "Pipe",
            ElementGroup.EXISTING, GeometryKind.LINE, tracks_status=True,
        ),
        ElementSpec(
            ElementType.DOWNSPOUT, "Downspout", "DS",
            ElementGroup.EXISTING, GeometryKind.POINT,
            click_to_place=True, tracks_status=True,
        ),
    )
}

_uncatalogued = set(ElementType) - set(ELEMENT_CATALOGUE)
if _uncatalogued:
    raise RuntimeError(f"Element types missing from catalogue: {sorted(_uncatalogued)}")

EXISTING_INFRASTRUCTURE_TYPES = frozenset(
    t for t, spec in ELEMENT_CATALOGUE.items() if spec.tracks_status
)
CLICK_TO_PLACE_TYPES = frozenset(
    t for t, spec in ELEMENT_CATALOGUE.items() if spec.click_to_place
)
ELEMENT_UNIT_PRICES: Dict[ElementType, float] = {
    t: spec.unit_price
    for t, spec in ELEMENT_CATALOGUE.items()
    if spec.unit_price is not None
}


def element_spec(element_type: Union[ElementType, str]) -> ElementSpec:
    """Look up the catalogue entry for an element type."""
    return ELEMENT_CATALOGUE[ElementType(element_type)]


# Geometry


def _trim_altitude(value: Any) -> Any:
    if isinstance(value, (list, tuple)) and len(value) > 2:
        return tuple(value[:2])
    return value


def _check_position(value: Tuple[float, float]) -> Tuple[float, float]:
    lon, lat = value
    if not -180 <= lon <= 180:
        raise ValueError(f"Longitude out of range: {lon}")
    if not -90 <= lat <= 90:
        raise ValueError(f"Latitude out of range: {lat}")
    return value


# (longitude, latitude) in decimal degrees; a trailing altitude is dropped
Coordinate = Annotated[
    Tuple[float, float],
    BeforeValidator(_trim_altitude),
    AfterValidator(_check_position),
]


class LineGeometry(BaseModel):
    """Ordered sequence of at least two positions."""

    type: Literal["LineString"] = "LineString"
    coordinates: List[Coordinate] = Field(..., min_length=2)

    @property
    def kind(self) -> GeometryKind:
        return GeometryKind.LINE

    def to_shapely(self) -> LineString:
        return LineString(self.coordinates)

    def to_geojson(self) -> Dict[str, Any]:
        return {"type": self.type, "coordinates": [list(c) for c in self.coordinates]}


class PointGeometry(BaseModel):
    """Single position."""

    type: Literal["Point"] = "Point"
    coordinates: Coordinate

    @property
    def kind(self) -> GeometryKind:
        return GeometryKind.POINT

    def to_shapely(self) -> Point:
        return Point(self.coordinates)

    def to_geojson(self) -> Dict[str, Any]:
        return {"type": self.type, "coordinates": list(self.coordinates)}


class PolygonGeometry(BaseModel):
    """
    Single closed ring without holes.

    An unclosed ring is closed by repeating its first position.
    """

    type: Literal["Polygon"] = "Polygon"
    coordinates: List[List[Coordinate]]

    @field_validator("coordinates")
    @classmethod
    def validate_ring(cls, v: List[List[Tuple[float, float]]]) -> List[List[Tuple[float, float]]]:
        """Require exactly one closed ring of at least four positions."""
        if len(v) != 1:
            raise ValueError(f"Polygon must have exactly one ring, got {len(v)}")

        ring = list(v[0])
        if ring and ring[0] != ring[-1]:
            ring.append(ring[0])
        if len(ring) < 4:
            raise ValueError(f"Polygon ring needs at least 4 positions, got {len(ring)}")
        return [ring]

    @property
    def kind(self) -> GeometryKind:
        return GeometryKind.POLYGON

    @property
    def ring(self) -> List[Tuple[float, float]]:
        """The exterior ring."""
        return self.coordinates[0]

    def to_shapely(self) -> Polygon:
        return Polygon(self.ring)

    def to_geojson(self) -> Dict[str, Any]:
        return {"type": self.type, "coordinates": [[list(c) for c in self.ring]]}


Geometry = Annotated[
    Union[LineGeometry, PointGeometry, PolygonGeometry],
    Field(discriminator="type"),
]

_geometry_adapter: TypeAdapter = TypeAdapter(Geometry)


def parse_geometry(data: Any) -> Union[LineGeometry, PointGeometry, PolygonGeometry]:
    """
    Parse a GeoJSON geometry mapping.

    Raises:
        pydantic.ValidationError: If the geometry is malformed or unsupported
    """
    return _geometry_adapter.validate_python(data)


# Features


class DesignFeature(BaseModel):
    """
    One placed design element.

    Derived measurements are computed from the geometry on construction and
    replace any supplied value: ``length_ft`` for line geometries, ``area_ft``
    for polygons. Existing-infrastructure types default to a ``working`` status; other types never carry one.

    Attributes:
        id: Identifier, unique within one feature collection
        geometry: Line, point or polygon geometry
        element_type: Element type tag
        length_ft: Length in linear feet (lines only)
        area_ft: Area in square feet (polygons only)
        price: Flat unit price for click-to-place boxes
        status: Working/failed status (existing infrastructure only)
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    id: FeatureId
    geometry: Geometry
    element_type: ElementType
    length_ft: Optional[int] = Field(default=None, ge=0)
    area_ft: Optional[int] = Field(default=None, ge=0)
    price: Optional[float] = Field(default=None, ge=0)
    status: Optional[FeatureStatus] = None

    @model_validator(mode="before")
    @classmethod
    def flatten_geojson(cls, data: Any) -> Any:
        """Accept GeoJSON ``Feature`` mappings by lifting their properties."""
        if isinstance(data, dict) and isinstance(data.get("properties"), dict):
            flat = {k: v for k, v in data["properties"].items() if v is not None}
            flat.pop("id", None)
            flat.pop("label", None)
            if "id" in data:
                flat["id"] = data["id"]
            if "geometry" in data:
                flat["geometry"] = data["geometry"]
            return flat
        return data

    @model_validator(mode="after")
    def check_consistency(self) -> "DesignFeature":
        """
        Check the geometry kind and status, and measure from the geometry.

        Supplied ``length_ft`` or ``area_ft`` values are always replaced by
        the measured ones.
        """
        spec = ELEMENT_CATALOGUE[self.element_type]
        kind = self.geometry.kind

        if kind != spec.geometry_kind:
            raise ValueError(
                f"{self.element_type.value} requires {spec.geometry_kind.value} geometry, "
                f"got {kind.value}"
            )

        if kind == GeometryKind.LINE:
            self.length_ft = metrics.length_feet(self.geometry)
        elif self.length_ft is not None:
            raise ValueError("length_ft only applies to line geometries")

        if kind == GeometryKind.POLYGON:
            self.area_ft = metrics.area_square_feet(self.geometry)
        elif self.area_ft is not None:
            raise ValueError("area_ft only applies to polygon geometries")

        if spec.tracks_status:
            if self.status is None:
                self.status = FeatureStatus.WORKING
        elif self.status is not None:
            raise ValueError(f"{self.element_type.value} does not carry a status")

        return self

    @property
    def geometry_kind(self) -> GeometryKind:
        return self.geometry.kind

    @property
    def spec(self) -> ElementSpec:
        return ELEMENT_CATALOGUE[self.element_type]

    @property
    def label(self) -> str:
        """Short map label, derived from the element type."""
        return self.spec.short_label

    def remeasured(self, **changes: Any) -> "DesignFeature":
        """
        Copy with derived measurements recomputed from the geometry.

        Args:
            **changes: Field overrides (for example a new ``geometry`` or ``id``)
        """
        data = {
            "id": self.id,
            "geometry": self.geometry,
            "element_type": self.element_type,
            "price": self.price,
            "status": self.status,
        }
        data.update(changes)
        return DesignFeature(**data)

    def to_geojson(self) -> Dict[str, Any]:
        """Serialise as a GeoJSON ``Feature``."""
        properties: Dict[str, Any] = {"elementType": self.element_type.value}
        if self.length_ft is not None:
            properties["lengthFt"] = self.length_ft
        if self.area_ft is not None:
            properties["areaFt"] = self.area_ft
        if self.price is not None:
            properties["price"] = self.price
        if self.status is not None:
            properties["status"] = self.status.value

        return {
            "type": "Feature",
            "id": self.id,
            "geometry": self.geometry.to_geojson(),
            "properties": properties,
        }

    @model_serializer(mode="plain")
    def serialize_geojson(self) -> Dict[str, Any]:
        return self.to_geojson()


class FeatureCollection(BaseModel):
    """
    Ordered set of design features.

    Incoming features without an ``id`` are numbered by position.
    """

    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: List[DesignFeature] = Field(default_factory=list)

    @field_validator("features", mode="before")
    @classmethod
    def number_anonymous_features(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return v
        numbered = []
        for index, item in enumerate(v):
            if isinstance(item, dict) and item.get("id") is None:
                item = {**item, "id": f"feature-{index + 1}"}
            numbered.append(item)
        return numbered

    def to_geojson(self) -> Dict[str, Any]:
        return {"type": self.type, "features": [f.to_geojson() for f in self.features]}
