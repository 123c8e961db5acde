"""
Project API endpoints: list, save, load, delete and status changes.
"""

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import Field

from drainsketch.core.errors import ProjectNotFoundError, ValidationError
from drainsketch.core.pricing import PricingEngine
from drainsketch.core.storage import JsonFileProjectStore, ProjectStore
from drainsketch.models.errors import ErrorResponse
from drainsketch.models.feature import FeatureCollection
from drainsketch.models.project import (
    ProjectDetails,
    ProjectRecord,
    ProjectSummary,
    StatusUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


class ProjectSaveRequest(ProjectDetails):
    """Project details plus the design to save. Totals are computed server-side."""

    design: FeatureCollection = Field(default_factory=FeatureCollection)
    edited_at: Optional[datetime] = Field(
        None, description="Instant of the last design edit; defaults to now"
    )


@lru_cache
def get_project_store() -> ProjectStore:
    """Shared file-backed project store."""
    return JsonFileProjectStore()


def get_pricing_engine() -> PricingEngine:
    return PricingEngine.from_settings()


def build_record(
    request: ProjectSaveRequest,
    pricing: PricingEngine,
    project_id: Optional[str] = None,
) -> ProjectRecord:
    """Turn a save request into a record with freshly computed totals."""
    if not request.is_complete:
        raise ValidationError("Name and address required", field="name")

    features = [f.remeasured() for f in request.design.features]
    summary = pricing.calculate(features)

    return ProjectRecord(
        **request.model_dump(include=set(ProjectDetails.model_fields)),
        id=project_id,
        design=FeatureCollection(features=features),
        total_lf=summary.hydroblox_lf,
        parallel_lf=summary.parallel_lf,
        transition_count=summary.transition_count,
        stormwater_count=summary.stormwater_count,
        total_cost=summary.total,
        edited_at=request.edited_at or datetime.now(timezone.utc),
    )


@router.get(
    "",
    response_model=List[ProjectSummary],
    summary="List projects",
    description="Summaries of all saved projects, most recently updated first",
)
async def list_projects(store: ProjectStore = Depends(get_project_store)) -> List[ProjectSummary]:
    return await store.list()


@router.post(
    "",
    response_model=ProjectRecord,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Name or address missing"},
        500: {"model": ErrorResponse, "description": "Storage failure"},
    },
    summary="Create a project",
)
async def create_project(
    request: ProjectSaveRequest,
    store: ProjectStore = Depends(get_project_store),
    pricing: PricingEngine = Depends(get_pricing_engine),
) -> ProjectRecord:
    """
    Save a new project.

    Returns:
        The stored project with its assigned id
    """
    record = await store.save(build_record(request, pricing))
    logger.info(f"Created project {record.id}: {record.name!r}")
    return record


@router.get(
    "/{project_id}",
    response_model=ProjectRecord,
    responses={404: {"model": ErrorResponse, "description": "Project not found"}},
    summary="Get a project",
)
async def get_project(
    project_id: str,
    store: ProjectStore = Depends(get_project_store),
) -> ProjectRecord:
    record = await store.load(project_id)
    if record is None:
        raise ProjectNotFoundError(project_id)
    return record


@router.put(
    "/{project_id}",
    response_model=ProjectRecord,
    responses={
        400: {"model": ErrorResponse, "description": "Name or address missing"},
        404: {"model": ErrorResponse, "description": "Project not found"},
    },
    summary="Save a project",
    description="Save an existing project; saves older than the stored edit are ignored",
)
async def save_project(
    project_id: str,
    request: ProjectSaveRequest,
    store: ProjectStore = Depends(get_project_store),
    pricing: PricingEngine = Depends(get_pricing_engine),
) -> ProjectRecord:
    existing = await store.load(project_id)
    if existing is None:
        raise ProjectNotFoundError(project_id)

    record = build_record(request, pricing, project_id=project_id)
    return await store.save(record.model_copy(update={"created_at": existing.created_at}))


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse, "description": "Project not found"}},
    summary="Delete a project",
)
async def delete_project(
    project_id: str,
    store: ProjectStore = Depends(get_project_store),
) -> Response:
    if not await store.delete(project_id):
        raise ProjectNotFoundError(project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/{project_id}/status",
    response_model=ProjectRecord,
    responses={404: {"model": ErrorResponse, "description": "Project not found"}},
    summary="Change a project's status tag",
)
async def update_project_status(
    project_id: str,
    update: StatusUpdate,
    store: ProjectStore = Depends(get_project_store),
) -> ProjectRecord:
    return await store.update_status(project_id, update.status)
