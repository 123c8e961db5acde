"""
Tool and interaction state machine.

Translates palette selections and drawing-collaborator events into feature
model mutations. Exactly one tool is active at a time; the initial tool is
``select``. Placing a feature is one-shot: after a draw completes or a
click-to-place lands, the active tool returns to ``select``.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from pydantic import BaseModel, Field, ValidationError

from drainsketch.core.drawing import DrawingCollaborator, DrawMode
from drainsketch.core.errors import DrawingModeError
from drainsketch.core.feature_model import FeatureModel
from drainsketch.core.metrics import Bounds, design_bounds
from drainsketch.models.feature import (
    ELEMENT_CATALOGUE,
    DesignFeature,
    ElementGroup,
    ElementType,
    FeatureCollection,
    FeatureId,
    FeatureStatus,
    GeometryKind,
    PointGeometry,
)

logger = logging.getLogger(__name__)


class ToolType(str, Enum):
    """Palette tools: ``select`` plus one tool per element type."""

    SELECT = "select"
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

    @property
    def element_type(self) -> Optional[ElementType]:
        if self is ToolType.SELECT:
            return None
        return ElementType(self.value)


_missing_tools = {t.value for t in ElementType} - {t.value for t in ToolType}
if _missing_tools:
    raise RuntimeError(f"Element types without a tool: {sorted(_missing_tools)}")


GROUP_TITLES: Dict[ElementGroup, str] = {
    ElementGroup.GENERAL: "General",
    ElementGroup.HYDROBLOX: "HydroBlox",
    ElementGroup.WATER: "Water Flow",
    ElementGroup.EXISTING: "Existing Features",
}


@dataclass(frozen=True)
class ToolEntry:
    tool: ToolType
    display_name: str
    draw_mode: DrawMode


@dataclass(frozen=True)
class ToolGroup:
    group: ElementGroup
    title: str
    tools: Tuple[ToolEntry, ...]


def draw_mode_for(tool: Union[ToolType, str]) -> DrawMode:
    """Drawing mode armed when a tool is selected."""
    element_type = ToolType(tool).element_type
    if element_type is None:
        return DrawMode.SELECT

    spec = ELEMENT_CATALOGUE[element_type]
    if spec.click_to_place:
        return DrawMode.SELECT
    if spec.geometry_kind == GeometryKind.POLYGON:
        return DrawMode.DRAW_POLYGON
    return DrawMode.DRAW_LINE


def tool_palette() -> List[ToolGroup]:
    """Tools grouped for display, in palette order."""
    palette = []
    for group, title in GROUP_TITLES.items():
        if group == ElementGroup.GENERAL:
            entries = [ToolEntry(ToolType.SELECT, "Select", DrawMode.SELECT)]
        else:
            entries = [
                ToolEntry(ToolType(spec.element_type.value), spec.display_name,
                          draw_mode_for(spec.element_type.value))
                for spec in ELEMENT_CATALOGUE.values()
                if spec.group == group
            ]
        palette.append(ToolGroup(group=group, title=title, tools=tuple(entries)))
    return palette


class DrawnShape(BaseModel):
    """Raw shape as reported by the drawing collaborator."""

    id: Optional[FeatureId] = Field(None, description="Collaborator-side id, if any")
    geometry: Dict[str, Any] = Field(..., description="GeoJSON geometry")


ShapeInput = Union[DrawnShape, Dict[str, Any]]


def _as_shape(shape: ShapeInput) -> DrawnShape:
    if isinstance(shape, DrawnShape):
        return shape
    return DrawnShape.model_validate(shape)


class InteractionController:
    """
    Drives the feature model from tool selection and drawing events.

    Args:
        model: Feature model to mutate
        drawing: Drawing collaborator receiving mode changes and features
    """

    def __init__(self, model: FeatureModel, drawing: DrawingCollaborator):
        self.model = model
        self.drawing = drawing
        self._active_tool = ToolType.SELECT

    @property
    def active_tool(self) -> ToolType:
        return self._active_tool

    def select_tool(self, tool: Union[ToolType, str]) -> None:
        """Activate a palette tool and arm the matching drawing mode."""
        tool = ToolType(tool)
        self._active_tool = tool
        self._change_mode(draw_mode_for(tool))
        logger.debug(f"Active tool: {tool.value}")

    def _change_mode(self, mode: DrawMode) -> None:
        try:
            self.drawing.change_mode(mode)
        except DrawingModeError:
            logger.debug(f"Drawing already in {mode.value} mode")

    def _return_to_select(self) -> None:
        self.select_tool(ToolType.SELECT)

    def _discard_temporary(self, shape: DrawnShape) -> None:
        if shape.id is not None:
            self.drawing.delete([shape.id])

    # Drawing collaborator events

    def handle_created(self, shapes: Iterable[ShapeInput]) -> List[DesignFeature]:
        """
        Materialise features from completed draw gestures.

        Each shape becomes a feature of the active tool's type under a freshly
        allocated id; the collaborator's temporary copy is replaced by the
        canonical one. Shapes that cannot form a valid feature are dropped.
        """
        shapes = [_as_shape(s) for s in shapes]
        element_type = self._active_tool.element_type

        if element_type is None or ELEMENT_CATALOGUE[element_type].click_to_place:
            logger.warning(
                f"Ignoring {len(shapes)} drawn shape(s): tool {self._active_tool.value} does not draw"
            )
            for shape in shapes:
                self._discard_temporary(shape)
            return []

        spec = ELEMENT_CATALOGUE[element_type]
        created = []
        for shape in shapes:
            self._discard_temporary(shape)
            try:
                feature = DesignFeature(
                    id=self.model.allocate_id(element_type),
                    geometry=shape.geometry,
                    element_type=element_type,
                    price=spec.unit_price,
                )
            except ValidationError as e:
                logger.warning(
                    f"Dropping invalid {element_type.value} shape {shape.id}: "
                    f"{e.error_count()} validation error(s)"
                )
                continue

            self.drawing.add(feature.to_geojson())
            self.model.add(feature)
            created.append(feature)

        self._return_to_select()
        return created

    def handle_updated(self, shapes: Iterable[ShapeInput]) -> List[DesignFeature]:
        """
        Apply reshaped geometry to existing features.

        Only the geometry and its derived measurements change; id, type,
        price and status are carried over. Unknown ids are dropped.
        """
        updated = []
        for shape in (_as_shape(s) for s in shapes):
            current = self.model.get(shape.id) if shape.id is not None else None
            if current is None:
                logger.info(f"Dropping geometry edit for unknown feature {shape.id}")
                continue

            try:
                feature = current.remeasured(geometry=shape.geometry)
            except ValidationError as e:
                logger.warning(
                    f"Dropping invalid geometry edit for feature {current.id}: "
                    f"{e.error_count()} validation error(s)"
                )
                continue

            self.model.update_by_id(current.id, feature)
            updated.append(feature)
        return updated

    def handle_deleted(self, items: Iterable[Union[ShapeInput, FeatureId]]) -> List[DesignFeature]:
        """Remove features deleted on the drawing surface."""
        ids = []
        for item in items:
            if isinstance(item, (int, str)):
                ids.append(item)
            elif isinstance(item, dict):
                if item.get("id") is not None:
                    ids.append(item["id"])
            elif item.id is not None:
                ids.append(item.id)
        return self.model.remove_many(ids)

    # Pointer gestures

    def handle_map_click(self, lng: float, lat: float) -> Optional[DesignFeature]:
        """
        Place a point feature when a click-to-place tool is active.

        Returns:
            The placed feature, or None when the active tool does not place on click
        """
        element_type = self._active_tool.element_type
        if element_type is None or not ELEMENT_CATALOGUE[element_type].click_to_place:
            return None

        spec = ELEMENT_CATALOGUE[element_type]
        try:
            feature = DesignFeature(
                id=self.model.allocate_id(element_type),
                geometry=PointGeometry(coordinates=(lng, lat)),
                element_type=element_type,
                price=spec.unit_price,
            )
        except ValidationError as e:
            logger.warning(f"Dropping {element_type.value} click at ({lng}, {lat}): {e.error_count()} error(s)")
            return None

        self.drawing.add(feature.to_geojson())
        self.model.add(feature)
        logger.debug(f"Placed {element_type.value} {feature.id} at ({lng}, {lat})")

        self._return_to_select()
        return feature

    def handle_alternate_click(self, feature_id: FeatureId) -> Optional[FeatureStatus]:
        """
        Toggle working/failed on an existing-infrastructure feature.

        Returns:
            The new status, or None if the feature does not carry one
        """
        feature = self.model.get(feature_id)
        if feature is None or not feature.spec.tracks_status:
            return None
        return self.model.toggle_status(feature_id)

    def delete_selected(self) -> List[DesignFeature]:
        """Delete the features currently selected on the drawing surface."""
        selected = self.drawing.get_selected_ids()
        if not selected:
            return []
        self.drawing.delete(selected)
        return self.model.remove_many(selected)

    # Whole-design operations

    def load_design(self, features: Iterable[Union[DesignFeature, Dict[str, Any]]]) -> Optional[Bounds]:
        """
        Replace the design with the given features.

        Ids are reallocated and derived measurements recomputed.

        Returns:
            Bounding box of the loaded design, or None if it is empty
        """
        loaded = []
        for item in features:
            try:
                source = item if isinstance(item, DesignFeature) else DesignFeature.model_validate(item)
                feature = source.remeasured(
                    id=self.model.allocate_id(source.element_type),
                    price=source.price if source.price is not None else source.spec.unit_price,
                )
            except ValidationError as e:
                logger.warning(f"Skipping invalid feature while loading design: {e.error_count()} error(s)")
                continue
            loaded.append(feature)

        self.drawing.delete_all()
        for feature in loaded:
            self.drawing.add(feature.to_geojson())
        self.model.replace_all(loaded)
        self._return_to_select()

        return design_bounds(f.geometry for f in loaded)

    def clear_all(self) -> None:
        """Remove every feature from the design and the drawing surface."""
        self.drawing.delete_all()
        self.model.clear()
        self._return_to_select()

    def undo(self) -> bool:
        """Undo is not supported; always reports that nothing was undone."""
        logger.info("Undo requested but edit history is not kept")
        return False

    def get_all(self) -> FeatureCollection:
        return FeatureCollection(features=list(self.model.features))
