"""
Pydantic models for saved drainage projects.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from drainsketch.models.feature import FeatureCollection
from drainsketch.models.pricing import as_aware


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProjectStatus(str, Enum):
    """Lifecycle tag of a project."""

    DRAFT = "draft"
    QUOTED = "quoted"
    APPROVED = "approved"
    COMPLETED = "completed"


class ProjectDetails(BaseModel):
    """Descriptive fields a user fills in for a project."""

    name: str = Field("", max_length=255, description="Project name")
    address: str = Field("", description="Site address")
    lat: float = Field(..., ge=-90, le=90, description="Map centre latitude")
    lng: float = Field(..., ge=-180, le=180, description="Map centre longitude")
    customer_name: Optional[str] = Field(None, description="Customer contact name")
    customer_phone: Optional[str] = Field(None, description="Customer phone number")
    customer_email: Optional[str] = Field(None, description="Customer email address")
    notes: Optional[str] = Field(None, description="Free-form notes")
    status: ProjectStatus = Field(ProjectStatus.DRAFT, description="Lifecycle tag")

    @field_validator("name", "address")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @property
    def is_complete(self) -> bool:
        """Whether the fields required for saving are present."""
        return bool(self.name and self.address)


class ProjectTotals(BaseModel):
    """Derived quantities and cost stored with a project."""

    total_lf: int = Field(0, ge=0, description="HydroBlox run length in feet")
    parallel_lf: int = Field(0, ge=0, description="Parallel row length in feet")
    transition_count: int = Field(0, ge=0)
    stormwater_count: int = Field(0, ge=0)
    total_cost: int = Field(0, ge=0, description="Quoted total in whole dollars")


class ProjectRecord(ProjectDetails, ProjectTotals):
    """
    A saved project document.

    ``edited_at`` is the instant of the last design edit captured by this
    save; stores use it to discard saves that arrive out of order.
    """

    id: Optional[str] = Field(None, description="Store-assigned project id")
    design: FeatureCollection = Field(default_factory=FeatureCollection)
    edited_at: datetime = Field(default_factory=_utcnow)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("edited_at", "created_at", "updated_at")
    @classmethod
    def make_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_aware(v) if v is not None else None


class ProjectSummary(BaseModel):
    """Listing entry for a saved project."""

    id: str
    name: str
    address: str
    total_cost: int = 0
    status: ProjectStatus = ProjectStatus.DRAFT
    updated_at: Optional[datetime] = None

    @field_validator("updated_at")
    @classmethod
    def make_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_aware(v) if v is not None else None

    @classmethod
    def from_record(cls, record: ProjectRecord) -> "ProjectSummary":
        return cls(
            id=record.id,
            name=record.name,
            address=record.address,
            total_cost=record.total_cost,
            status=record.status,
            updated_at=record.updated_at,
        )


class StatusUpdate(BaseModel):
    """Request body for changing a project's status tag."""

    status: ProjectStatus
