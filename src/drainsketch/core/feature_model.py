"""
Feature model: the canonical, observable collection of design features.

The model owns feature identity. Every feature that enters the design gets
its id from ``allocate_id`` so that drawn and click-placed features share one
id space. Mutations notify subscribers synchronously, after the change has
been applied.
"""

import itertools
import logging
import threading
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from drainsketch.core.errors import GeometryError
from drainsketch.models.feature import (
    DesignFeature,
    ElementType,
    FeatureId,
    FeatureStatus,
)

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"
    CLEARED = "cleared"
    LOADED = "loaded"


@dataclass(frozen=True)
class FeatureModelEvent:
    """Notification describing one applied mutation."""

    kind: ChangeKind
    feature_ids: Tuple[FeatureId, ...]
    revision: int


Listener = Callable[[FeatureModelEvent], None]


class FeatureModel:
    """
    Ordered collection of design features with CRUD-by-id and aggregates.

    All mutations run under a single re-entrant lock, so one model may be
    shared between threads of a server-side session.
    """

    def __init__(self, features: Optional[Iterable[DesignFeature]] = None):
        self._features: List[DesignFeature] = list(features or [])
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()
        self._id_counter = itertools.count(1)
        self._revision = 0

    # Identity

    def allocate_id(self, element_type: ElementType) -> str:
        """Allocate a fresh feature id, unique within this model."""
        with self._lock:
            while True:
                candidate = f"{ElementType(element_type).value}-{next(self._id_counter)}"
                if self._index_of(candidate) is None:
                    return candidate

    # Subscription

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            A function that removes the listener again
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, kind: ChangeKind, feature_ids: Iterable[FeatureId]) -> None:
        self._revision += 1
        event = FeatureModelEvent(kind=kind, feature_ids=tuple(feature_ids), revision=self._revision)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Feature model listener failed on {kind.value}: {e}", exc_info=True)

    # Mutations

    def add(self, feature: DesignFeature) -> None:
        """Append a feature. Callers are responsible for id uniqueness."""
        with self._lock:
            self._features.append(feature)
            logger.debug(f"Added {feature.element_type.value} feature {feature.id}")
            self._notify(ChangeKind.ADDED, [feature.id])

    def update_by_id(self, feature_id: FeatureId, feature: DesignFeature) -> bool:
        """
        Replace the feature with the given id.

        Returns:
            True if a feature was replaced, False if the id is unknown

        Raises:
            GeometryError: If the replacement changes the geometry kind or the id
        """
        with self._lock:
            index = self._index_of(feature_id)
            if index is None:
                logger.debug(f"Update for unknown feature {feature_id} ignored")
                return False

            current = self._features[index]
            if feature.geometry_kind != current.geometry_kind:
                raise GeometryError(
                    f"Feature {feature_id} is a {current.geometry_kind.value}; "
                    f"cannot replace it with a {feature.geometry_kind.value}",
                    geometry_type=feature.geometry_kind.value,
                )
            if feature.id != current.id:
                raise GeometryError(
                    f"Replacement for feature {feature_id} carries id {feature.id}",
                )

            self._features[index] = feature
            self._notify(ChangeKind.UPDATED, [feature_id])
            return True

    def remove_by_id(self, feature_id: FeatureId) -> Optional[DesignFeature]:
        """Remove a feature; removing an unknown id does nothing."""
        with self._lock:
            index = self._index_of(feature_id)
            if index is None:
                logger.debug(f"Remove for unknown feature {feature_id} ignored")
                return None

            removed = self._features.pop(index)
            self._notify(ChangeKind.REMOVED, [feature_id])
            return removed

    def remove_many(self, feature_ids: Iterable[FeatureId]) -> List[DesignFeature]:
        """Remove several features in one mutation."""
        with self._lock:
            wanted = set(feature_ids)
            removed = [f for f in self._features if f.id in wanted]
            if not removed:
                return []

            self._features = [f for f in self._features if f.id not in wanted]
            self._notify(ChangeKind.REMOVED, [f.id for f in removed])
            return removed

    def clear(self) -> None:
        """Remove every feature."""
        with self._lock:
            removed_ids = [f.id for f in self._features]
            self._features = []
            self._notify(ChangeKind.CLEARED, removed_ids)

    def replace_all(self, features: Iterable[DesignFeature]) -> None:
        """Swap in a whole new design as a single mutation."""
        with self._lock:
            self._features = list(features)
            logger.debug(f"Loaded {len(self._features)} features")
            self._notify(ChangeKind.LOADED, [f.id for f in self._features])

    def toggle_status(self, feature_id: FeatureId) -> Optional[FeatureStatus]:
        """
        Flip a feature between working and failed.

        Features without a status are left alone.

        Returns:
            The new status, or None if nothing changed
        """
        with self._lock:
            index = self._index_of(feature_id)
            if index is None:
                logger.debug(f"Status toggle for unknown feature {feature_id} ignored")
                return None

            current = self._features[index]
            if current.status is None:
                return None

            new_status = current.status.toggled()
            self._features[index] = current.model_copy(update={"status": new_status})
            logger.debug(f"Feature {feature_id} is now {new_status.value}")
            self._notify(ChangeKind.UPDATED, [feature_id])
            return new_status

    # Queries

    @property
    def revision(self) -> int:
        """Number of mutations applied so far."""
        return self._revision

    @property
    def features(self) -> Tuple[DesignFeature, ...]:
        with self._lock:
            return tuple(self._features)

    def __len__(self) -> int:
        return len(self._features)

    def __iter__(self):
        return iter(self.features)

    def __contains__(self, feature_id: object) -> bool:
        return self._index_of(feature_id) is not None

    def get(self, feature_id: FeatureId) -> Optional[DesignFeature]:
        with self._lock:
            index = self._index_of(feature_id)
            return self._features[index] if index is not None else None

    def total_linear_feet(self) -> int:
        """Sum of ``length_ft`` over every feature that has one."""
        return sum(f.length_ft for f in self.features if f.length_ft)

    def features_by_type(self, element_type: ElementType) -> List[DesignFeature]:
        element_type = ElementType(element_type)
        return [f for f in self.features if f.element_type is element_type]

    def count_by_type(self) -> Dict[ElementType, int]:
        return dict(Counter(f.element_type for f in self.features))

    def total_unit_price(self) -> float:
        """Sum of the flat ``price`` fields."""
        return sum(f.price for f in self.features if f.price is not None)

    def _index_of(self, feature_id: object) -> Optional[int]:
        for index, feature in enumerate(self._features):
            if feature.id == feature_id:
                return index
        return None
