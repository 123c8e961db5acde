"""
Editing session for one project.

``EditorSession`` owns a feature model and wires it to the interaction
controller, the rendering projection, the pricing engine and the project
store. Design edits mark the session dirty and, once the project has been
saved at least once, schedule a debounced automatic save.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from drainsketch.core.autosave import AutoSaveScheduler, SaveStatus
from drainsketch.core.config import settings
from drainsketch.core.drawing import DrawingCollaborator, InMemoryDrawingSurface
from drainsketch.core.errors import ProjectNotFoundError, StorageError
from drainsketch.core.feature_model import FeatureModel, FeatureModelEvent
from drainsketch.core.interaction import InteractionController
from drainsketch.core.logging_config import LogContext
from drainsketch.core.metrics import Bounds
from drainsketch.core.pricing import PricingEngine
from drainsketch.core.rendering import RenderingProjection
from drainsketch.core.storage import ProjectStore
from drainsketch.models.feature import FeatureCollection
from drainsketch.models.pricing import PricingSummary
from drainsketch.models.project import ProjectDetails, ProjectRecord

logger = logging.getLogger(__name__)

MISSING_DETAILS_MESSAGE = "Name and address required"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SaveResult:
    """Outcome of a save attempt. Failures leave the in-memory design untouched."""

    success: bool
    project: Optional[ProjectRecord] = None
    error: Optional[str] = None


def default_details() -> ProjectDetails:
    return ProjectDetails(lat=settings.default_lat, lng=settings.default_lng)


class EditorSession:
    """
    One user's editing session.

    Args:
        store: Project persistence
        drawing: Drawing collaborator (a headless surface by default)
        pricing: Pricing engine (built from settings by default)
        debounce_seconds: Autosave quiet period (defaults to settings)
    """

    def __init__(
        self,
        store: ProjectStore,
        drawing: Optional[DrawingCollaborator] = None,
        pricing: Optional[PricingEngine] = None,
        debounce_seconds: Optional[float] = None,
    ) -> None:
        self.store = store
        self.model = FeatureModel()
        self.drawing = drawing if drawing is not None else InMemoryDrawingSurface()
        self.controller = InteractionController(self.model, self.drawing)
        self.rendering = RenderingProjection(self.model)
        self.pricing = pricing if pricing is not None else PricingEngine.from_settings()
        self.autosave = AutoSaveScheduler(self.autosave_now, debounce_seconds)

        self.project_id: Optional[str] = None
        self.details = default_details()
        self.created_at: Optional[datetime] = None
        self.is_dirty = False
        self.save_status = SaveStatus.IDLE
        self.last_saved: Optional[datetime] = None
        self.last_error: Optional[str] = None
        self.bounds: Optional[Bounds] = None

        self._edited_at = _utcnow()
        # Bumped whenever load/reset swaps the project under the session.
        self._generation = 0
        self._tracking = True
        self._unsubscribe = self.model.subscribe(self._on_model_change)

    # Change tracking

    def _on_model_change(self, event: FeatureModelEvent) -> None:
        if self._tracking:
            self.mark_dirty()

    def mark_dirty(self) -> None:
        """Record an edit and schedule an automatic save if the project exists."""
        self.is_dirty = True
        self._edited_at = _utcnow()
        if self.project_id is not None:
            self.autosave.notify_change()

    def update_details(self, **changes: Any) -> ProjectDetails:
        """
        Change project details (name, address, customer fields and so on).

        Raises:
            pydantic.ValidationError: If a value is invalid
        """
        merged = {**self.details.model_dump(), **changes}
        self.details = ProjectDetails.model_validate(merged)
        self.mark_dirty()
        return self.details

    # Derived state

    def quote(self, now: Optional[datetime] = None) -> PricingSummary:
        return self.pricing.calculate(self.model.features, now=now)

    def design(self) -> FeatureCollection:
        return self.controller.get_all()

    def to_record(self) -> ProjectRecord:
        """Snapshot the session as a project record."""
        summary = self.quote()
        return ProjectRecord(
            **self.details.model_dump(),
            id=self.project_id,
            design=self.design(),
            total_lf=summary.hydroblox_lf,
            parallel_lf=summary.parallel_lf,
            transition_count=summary.transition_count,
            stormwater_count=summary.stormwater_count,
            total_cost=summary.total,
            edited_at=self._edited_at,
            created_at=self.created_at,
        )

    # Persistence

    async def save(self) -> SaveResult:
        """
        Save the project.

        Storage failures are reported in the result; edits stay in memory so
        the next save can retry them. A save that completes after the session
        has switched to another project still reaches the store, but leaves
        the session's state alone.
        """
        if not self.details.is_complete:
            return SaveResult(success=False, error=MISSING_DETAILS_MESSAGE)

        record = self.to_record()
        generation = self._generation
        self.save_status = SaveStatus.SAVING
        try:
            with LogContext(project_id=self.project_id or "new"):
                stored = await self.store.save(record)
        except StorageError as e:
            if generation != self._generation:
                logger.error(f"Saving project {record.id or '(new)'} failed after switching projects: {e.message}")
                return SaveResult(success=False, error=e.message)
            self.save_status = SaveStatus.ERROR
            self.last_error = e.message
            logger.error(f"Saving project {self.project_id or '(new)'} failed: {e.message}")
            return SaveResult(success=False, error=e.message)

        if generation != self._generation:
            logger.info(f"Save of project {stored.id} finished after switching projects; session left unchanged")
            return SaveResult(success=True, project=stored)

        self.project_id = stored.id
        self.created_at = stored.created_at
        if self._edited_at <= record.edited_at:
            self.is_dirty = False
        self.save_status = SaveStatus.SAVED
        self.last_saved = stored.updated_at
        self.last_error = None
        return SaveResult(success=True, project=stored)

    async def save_now(self) -> SaveResult:
        """Manual save: cancels any pending automatic save and saves immediately."""
        return await self.autosave.run_now(self.save)

    async def autosave_now(self) -> Optional[SaveResult]:
        """Automatic save; only runs for an already-saved project with edits."""
        if self.project_id is None or not self.is_dirty:
            return None
        return await self.save()

    async def load(self, project_id: str) -> ProjectRecord:
        """
        Replace the session with a saved project.

        Raises:
            ProjectNotFoundError: If the project does not exist
            StorageError: If the project cannot be read
        """
        record = await self.store.load(project_id)
        if record is None:
            raise ProjectNotFoundError(project_id)

        self._generation += 1
        self.autosave.cancel_pending()
        self._tracking = False
        try:
            self.bounds = self.controller.load_design(record.design.features)
        finally:
            self._tracking = True

        self.project_id = record.id
        self.details = ProjectDetails.model_validate(record.model_dump(include=set(ProjectDetails.model_fields)))
        self.created_at = record.created_at
        self.is_dirty = False
        self.save_status = SaveStatus.IDLE
        self.last_saved = record.updated_at
        self.last_error = None
        self._edited_at = record.edited_at

        logger.info(f"Loaded project {project_id} with {len(self.model)} features")
        return record

    def reset(self) -> None:
        """Start a fresh, unsaved project."""
        self._generation += 1
        self.autosave.cancel_pending()
        self._tracking = False
        try:
            self.controller.clear_all()
        finally:
            self._tracking = True

        self.project_id = None
        self.details = default_details()
        self.created_at = None
        self.is_dirty = False
        self.save_status = SaveStatus.IDLE
        self.last_saved = None
        self.last_error = None
        self.bounds = None
        self._edited_at = _utcnow()

    async def close(self) -> None:
        await self.autosave.close()
        self.rendering.close()
        self._unsubscribe()
