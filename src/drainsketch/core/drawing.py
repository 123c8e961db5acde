"""
Drawing collaborator contract.

The drawing collaborator is the external library that lets the user sketch
lines and polygons and reshape them. The engine drives it through mode
changes and add/delete commands keyed by feature id, and listens to its
created/updated/deleted events (see ``InteractionController``).
"""

import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Protocol, runtime_checkable

from drainsketch.core.errors import DrawingModeError
from drainsketch.models.feature import FeatureId

logger = logging.getLogger(__name__)


class DrawMode(str, Enum):
    SELECT = "select"
    DRAW_LINE = "draw-line"
    DRAW_POLYGON = "draw-polygon"


@runtime_checkable
class DrawingCollaborator(Protocol):
    """Commands the engine issues to the drawing library."""

    @property
    def mode(self) -> DrawMode: ...

    def change_mode(self, mode: DrawMode) -> None:
        """Switch mode; may raise DrawingModeError when already in it."""
        ...

    def add(self, feature: Dict[str, Any]) -> None: ...

    def delete(self, feature_ids: Iterable[FeatureId]) -> None: ...

    def delete_all(self) -> None: ...

    def get_all(self) -> List[Dict[str, Any]]: ...

    def get_selected_ids(self) -> List[FeatureId]: ...


class InMemoryDrawingSurface:
    """
    Headless drawing collaborator holding GeoJSON features by id.

    Used by server-side sessions and tests. Like interactive drawing
    libraries it refuses to re-enter the mode it is already in.
    """

    def __init__(self, strict_modes: bool = True):
        self.strict_modes = strict_modes
        self._mode = DrawMode.SELECT
        self._features: Dict[FeatureId, Dict[str, Any]] = {}
        self._selected: List[FeatureId] = []

    @property
    def mode(self) -> DrawMode:
        return self._mode

    def change_mode(self, mode: DrawMode) -> None:
        mode = DrawMode(mode)
        if mode == self._mode and self.strict_modes:
            raise DrawingModeError(mode.value)
        self._mode = mode

    def add(self, feature: Dict[str, Any]) -> None:
        feature_id = feature.get("id")
        if feature_id is None:
            raise ValueError("Drawing surface features need an id")
        self._features[feature_id] = feature

    def delete(self, feature_ids: Iterable[FeatureId]) -> None:
        for feature_id in feature_ids:
            self._features.pop(feature_id, None)
            if feature_id in self._selected:
                self._selected.remove(feature_id)

    def delete_all(self) -> None:
        self._features.clear()
        self._selected.clear()

    def get(self, feature_id: FeatureId) -> Optional[Dict[str, Any]]:
        return self._features.get(feature_id)

    def get_all(self) -> List[Dict[str, Any]]:
        return list(self._features.values())

    def select(self, feature_ids: Iterable[FeatureId]) -> None:
        self._selected = [fid for fid in feature_ids if fid in self._features]

    def get_selected_ids(self) -> List[FeatureId]:
        return list(self._selected)
