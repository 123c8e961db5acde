"""
Project persistence.

``ProjectStore`` is the contract the editing session saves through;
``JsonFileProjectStore`` implements it with one JSON document per project.
"""

import asyncio
import json
import logging
import shutil
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Protocol
from uuid import UUID, uuid4

from pydantic import ValidationError as PydanticValidationError

from drainsketch.core.errors import ProjectNotFoundError, StorageError
from drainsketch.models.pricing import as_aware
from drainsketch.models.project import ProjectRecord, ProjectStatus, ProjectSummary
from drainsketch.utils.logging import log_async_performance

logger = logging.getLogger(__name__)


class ProjectStore(Protocol):
    """Persistence contract for named projects."""

    async def save(self, project: ProjectRecord) -> ProjectRecord: ...

    async def load(self, project_id: str) -> Optional[ProjectRecord]: ...

    async def list(self) -> List[ProjectSummary]: ...

    async def delete(self, project_id: str) -> bool: ...

    async def update_status(self, project_id: str, status: ProjectStatus) -> ProjectRecord: ...


def _is_valid_id(project_id: str) -> bool:
    try:
        UUID(str(project_id))
    except ValueError:
        return False
    return True


class JsonFileProjectStore:
    """
    File-backed project store.

    Each project lives in ``<base_dir>/<project_id>.json`` and is written
    atomically (temp file, then move). Saves for one project are serialised,
    and a save whose ``edited_at`` predates the stored record is ignored so
    that a slow, stale save never overwrites a newer one.
    """

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        """
        Initialize the store.

        Args:
            base_dir: Directory for project documents (defaults to settings.projects_dir)
        """
        if base_dir is None:
            from drainsketch.core.config import settings

            base_dir = settings.projects_dir
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        logger.info(f"JsonFileProjectStore initialized with base_dir: {self.base_dir}")

    def _get_project_path(self, project_id: str) -> Path:
        return self.base_dir / f"{project_id}.json"

    def _read(self, project_id: str) -> Optional[ProjectRecord]:
        path = self._get_project_path(project_id)
        if not path.exists():
            return None
        try:
            return ProjectRecord.model_validate_json(path.read_text())
        except (OSError, PydanticValidationError) as e:
            logger.error(f"Failed to read project {project_id}: {e}")
            raise StorageError(
                f"Failed to read project: {e}", operation="load", project_id=project_id
            ) from e

    def _write(self, project: ProjectRecord) -> None:
        path = self._get_project_path(project.id)
        temp_path = path.with_suffix(".tmp")
        try:
            temp_path.write_text(json.dumps(project.model_dump(mode="json"), indent=2))
            shutil.move(str(temp_path), str(path))
        except OSError as e:
            logger.error(f"Failed to write project {project.id}: {e}")
            temp_path.unlink(missing_ok=True)
            raise StorageError(
                f"Failed to write project: {e}", operation="save", project_id=project.id
            ) from e

    @log_async_performance(log_level=logging.DEBUG)
    async def save(self, project: ProjectRecord) -> ProjectRecord:
        """
        Create or update a project.

        Projects without an id get a new one.

        Returns:
            The stored record, which is the existing one if this save is stale

        Raises:
            StorageError: If the document cannot be written
        """
        now = datetime.now(timezone.utc)
        project_id = project.id or str(uuid4())
        if not _is_valid_id(project_id):
            raise StorageError(
                f"Invalid project id: {project_id}", operation="save", project_id=project_id
            )

        async with self._locks[project_id]:
            existing = self._read(project_id) if project.id else None
            edited_at = as_aware(project.edited_at)

            if existing is not None and edited_at < existing.edited_at:
                logger.info(
                    f"Ignoring stale save for project {project_id}: "
                    f"edited {edited_at.isoformat()} < {existing.edited_at.isoformat()}"
                )
                return existing

            record = project.model_copy(
                update={
                    "id": project_id,
                    "edited_at": edited_at,
                    "created_at": existing.created_at if existing else as_aware(project.created_at or now),
                    "updated_at": now,
                }
            )
            self._write(record)

        logger.info(f"Saved project {project_id} ({record.name!r}, {len(record.design.features)} features)")
        return record

    @log_async_performance(log_level=logging.DEBUG)
    async def load(self, project_id: str) -> Optional[ProjectRecord]:
        """
        Load a project.

        Returns:
            The project, or None if it does not exist
        """
        if not _is_valid_id(project_id):
            logger.warning(f"Rejected malformed project id: {project_id!r}")
            return None

        record = self._read(project_id)
        if record is None:
            logger.debug(f"Project not found: {project_id}")
        return record

    async def list(self) -> List[ProjectSummary]:
        """Summaries of every project, most recently updated first."""
        summaries = []
        for path in self.base_dir.glob("*.json"):
            project_id = path.stem
            if not _is_valid_id(project_id):
                continue
            try:
                record = self._read(project_id)
            except StorageError:
                logger.warning(f"Skipping unreadable project file {path.name}")
                continue
            if record is not None:
                summaries.append(ProjectSummary.from_record(record))

        epoch = datetime.min.replace(tzinfo=timezone.utc)
        summaries.sort(key=lambda s: s.updated_at or epoch, reverse=True)
        return summaries

    async def delete(self, project_id: str) -> bool:
        """
        Delete a project.

        Returns:
            True if a project was deleted, False if it did not exist
        """
        if not _is_valid_id(project_id):
            return False

        async with self._locks[project_id]:
            path = self._get_project_path(project_id)
            if not path.exists():
                return False
            try:
                path.unlink()
            except OSError as e:
                logger.error(f"Failed to delete project {project_id}: {e}")
                raise StorageError(
                    f"Failed to delete project: {e}", operation="delete", project_id=project_id
                ) from e

        self._locks.pop(project_id, None)
        logger.info(f"Deleted project {project_id}")
        return True

    async def update_status(self, project_id: str, status: ProjectStatus) -> ProjectRecord:
        """
        Change a project's status tag.

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        if not _is_valid_id(project_id):
            raise ProjectNotFoundError(project_id)

        async with self._locks[project_id]:
            existing = self._read(project_id)
            if existing is None:
                raise ProjectNotFoundError(project_id)

            record = existing.model_copy(
                update={"status": status, "updated_at": datetime.now(timezone.utc)}
            )
            self._write(record)

        logger.info(f"Project {project_id} status set to {status.value}")
        return record
