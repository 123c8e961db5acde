"""
Pydantic models for standardized API error responses.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class ErrorDetail(BaseModel):
    """One field-level validation problem."""

    field: Optional[str] = Field(None, description="Field path that caused the error")
    message: str = Field(..., description="Error message for this field")
    code: Optional[str] = Field(None, description="Error code for this specific issue")


class ErrorResponse(BaseModel):
    """
    Error body returned by every API endpoint.

    Attributes:
        error_code: Machine-readable error identifier (e.g. 'PROJECT_NOT_FOUND')
        message: Human-readable error message
        details: Additional technical details
        timestamp: When the error occurred (UTC)
        request_id: Request correlation ID for tracing
        suggestions: Actionable suggestions for resolution
        errors: Field-level errors (validation only)
    """

    error_code: str = Field(
        ...,
        description="Machine-readable error code",
        examples=["VALIDATION_ERROR", "PROJECT_NOT_FOUND", "GEOCODING_UNAVAILABLE"],
    )
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional technical details")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the error occurred (UTC)",
    )
    request_id: Optional[str] = Field(None, description="Request correlation ID for tracing")
    suggestions: Optional[List[str]] = Field(None, description="Suggestions for resolving the error")
    errors: Optional[List[ErrorDetail]] = Field(None, description="Field-level errors")

    @field_serializer("timestamp")
    def serialize_timestamp(self, timestamp: datetime, _info) -> str:
        return timestamp.isoformat()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error_code": "PROJECT_NOT_FOUND",
                "message": "Project '3f1c...' not found",
                "details": {"project_id": "3f1c..."},
                "timestamp": "2026-03-02T15:30:00+00:00",
                "request_id": "550e8400-e29b-41d4-a716-446655440000",
                "suggestions": ["Check the project id", "List projects to find it"],
            }
        }
    )
