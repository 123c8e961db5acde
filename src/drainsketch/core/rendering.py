"""
Rendering projection: map styling derived from the feature model.

Each element type has a fixed visual channel (colour, dash pattern, fill or
icon). Existing infrastructure marked as failed switches to the alert
colour. The projection subscribes to the feature model and re-derives its
output on every change without ever mutating the model.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from drainsketch.core.feature_model import FeatureModel, FeatureModelEvent
from drainsketch.models.feature import (
    ELEMENT_CATALOGUE,
    DesignFeature,
    ElementType,
    FeatureId,
    FeatureStatus,
    GeometryKind,
)

logger = logging.getLogger(__name__)

ALERT_COLOR = "#ef4444"


class LinePattern(str, Enum):
    SOLID = "solid"
    DASHED = "dashed"
    DOTTED = "dotted"


class LayerKind(str, Enum):
    LINE = "line"
    FILL = "fill"
    SYMBOL = "symbol"


@dataclass(frozen=True)
class ElementStyle:
    """
    Visual channel for one element type.

    ``dash_array`` applies to lines and polygon outlines; ``icon`` to points.
    """

    color: str
    pattern: LinePattern = LinePattern.SOLID
    dash_array: Optional[Tuple[float, ...]] = None
    line_width: float = 3.0
    fill_opacity: Optional[float] = None
    icon: Optional[str] = None
    failed_icon: Optional[str] = None


ELEMENT_STYLES: Dict[ElementType, ElementStyle] = {
    ElementType.HYDROBLOX_RUN: ElementStyle(color="#2563eb", line_width=4.0),
    ElementType.PARALLEL_ROW: ElementStyle(
        color="#06b6d4", pattern=LinePattern.DASHED, dash_array=(4, 2)
    ),
    ElementType.TRANSITION_BOX: ElementStyle(color="#3b82f6", icon="transition-box-icon"),
    ElementType.STORMWATER_BOX: ElementStyle(color="#0ea5e9", icon="stormwater-box-icon"),
    ElementType.FLOW_ARROW: ElementStyle(color="#f97316"),
    ElementType.STANDING_WATER: ElementStyle(color="#eab308", line_width=2.0, fill_opacity=0.3),
    ElementType.PROBLEM_AREA: ElementStyle(
        color="#ef4444", pattern=LinePattern.DASHED, dash_array=(4, 2),
        line_width=2.0, fill_opacity=0.25,
    ),
    ElementType.EXISTING_SWALE: ElementStyle(
        color="#22c55e", pattern=LinePattern.DASHED, dash_array=(6, 3)
    ),
    ElementType.EXISTING_FRENCH_DRAIN: ElementStyle(
        color="#10b981", pattern=LinePattern.DOTTED, dash_array=(2, 2)
    ),
    ElementType.EXISTING_PIPE: ElementStyle(color="#14b8a6"),
    ElementType.DOWNSPOUT: ElementStyle(
        color="#6b7280", icon="downspout-icon", failed_icon="downspout-failed-icon"
    ),
}

_unstyled = set(ElementType) - set(ELEMENT_STYLES)
if _unstyled:
    raise RuntimeError(f"Element types without a style: {sorted(_unstyled)}")


@dataclass(frozen=True)
class RenderedFeature:
    """Styling and annotation for one feature."""

    id: FeatureId
    element_type: ElementType
    geometry_kind: GeometryKind
    label: str
    display_text: str
    color: str
    pattern: LinePattern
    icon: Optional[str]
    alert: bool

    def to_properties(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "elementType": self.element_type.value,
            "label": self.label,
            "displayText": self.display_text,
            "color": self.color,
            "pattern": self.pattern.value,
            "icon": self.icon,
            "alert": self.alert,
        }


def display_text(feature: DesignFeature) -> str:
    """On-map annotation: lines show label and length, others the label alone."""
    if feature.geometry_kind == GeometryKind.LINE:
        return f"{feature.label} {feature.length_ft or 0}'"
    return feature.label


def render_feature(feature: DesignFeature) -> RenderedFeature:
    style = ELEMENT_STYLES[feature.element_type]
    alert = feature.status is FeatureStatus.FAILED

    icon = style.icon
    if alert and style.failed_icon:
        icon = style.failed_icon

    return RenderedFeature(
        id=feature.id,
        element_type=feature.element_type,
        geometry_kind=feature.geometry_kind,
        label=feature.label,
        display_text=display_text(feature),
        color=ALERT_COLOR if alert else style.color,
        pattern=style.pattern,
        icon=icon,
        alert=alert,
    )


def project(features) -> List[RenderedFeature]:
    """Render every feature, preserving order."""
    return [render_feature(f) for f in features]


def layer_definitions() -> List[Dict[str, Any]]:
    """
    Static map layer definitions, one set per element type.

    Lines get a line layer, polygons a fill and an outline layer, points a
    symbol layer. Each layer filters the shared source on ``elementType``.
    """
    layers: List[Dict[str, Any]] = []
    for element_type, style in ELEMENT_STYLES.items():
        spec = ELEMENT_CATALOGUE[element_type]
        base = {
            "elementType": element_type.value,
            "filter": ["==", ["get", "elementType"], element_type.value],
            "color": style.color,
        }
        if spec.tracks_status:
            base["failedColor"] = ALERT_COLOR

        if spec.geometry_kind == GeometryKind.POINT:
            layer = {**base, "id": f"{element_type.value}-symbol", "kind": LayerKind.SYMBOL.value,
                     "icon": style.icon}
            if style.failed_icon:
                layer["failedIcon"] = style.failed_icon
            layers.append(layer)
            continue

        if spec.geometry_kind == GeometryKind.POLYGON:
            layers.append({**base, "id": f"{element_type.value}-fill", "kind": LayerKind.FILL.value,
                           "opacity": style.fill_opacity})

        line_layer = {**base, "id": f"{element_type.value}-line", "kind": LayerKind.LINE.value,
                      "width": style.line_width}
        if style.dash_array:
            line_layer["dashArray"] = list(style.dash_array)
        layers.append(line_layer)
    return layers


RenderListener = Callable[[List[RenderedFeature]], None]


class RenderingProjection:
    """
    Live projection of a feature model onto map styling.

    Recomputes on every feature model event and forwards the result to its
    own listeners.
    """

    def __init__(self, model: FeatureModel):
        self.model = model
        self._listeners: List[RenderListener] = []
        self._rendered: List[RenderedFeature] = project(model.features)
        self._unsubscribe: Optional[Callable[[], None]] = model.subscribe(self._on_change)

    @property
    def rendered(self) -> List[RenderedFeature]:
        return list(self._rendered)

    def subscribe(self, listener: RenderListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _on_change(self, event: FeatureModelEvent) -> None:
        self._rendered = project(self.model.features)
        logger.debug(f"Re-rendered {len(self._rendered)} features after {event.kind.value}")
        for listener in list(self._listeners):
            try:
                listener(self.rendered)
            except Exception as e:
                logger.error(f"Render listener failed: {e}", exc_info=True)

    def to_geojson(self) -> Dict[str, Any]:
        """GeoJSON source payload for the map renderer."""
        by_id = {r.id: r for r in self._rendered}
        features = []
        for feature in self.model.features:
            rendered = by_id.get(feature.id) or render_feature(feature)
            payload = feature.to_geojson()
            payload["properties"] = {**payload["properties"], **rendered.to_properties()}
            features.append(payload)
        return {"type": "FeatureCollection", "features": features}

    def close(self) -> None:
        """Stop following the feature model."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._listeners.clear()
