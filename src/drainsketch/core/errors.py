"""
Custom exception hierarchy for the Drainsketch application.

This module defines the exceptions raised by the design engine, the project
store and the address resolver, so that callers and the HTTP layer can handle
them uniformly.
"""

from typing import Any, Dict, List, Optional


class DrainsketchException(Exception):
    """
    Base exception for all Drainsketch-specific errors.

    Attributes:
        error_code: String identifier for the error type
        message: User-friendly error message
        details: Technical details for logging/debugging
        status_code: HTTP status code for API responses
        suggestions: Optional list of resolution suggestions
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize DrainsketchException.

        Args:
            message: User-friendly error message
            error_code: String identifier for the error type
            status_code: HTTP status code (default: 500)
            details: Technical details for logging
            suggestions: List of suggestions for resolution
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for API responses.

        Returns:
            Dictionary representation of the error
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "suggestions": self.suggestions,
        }

    def __str__(self) -> str:
        """String representation of the exception."""
        return f"{self.error_code}: {self.message}"

    def __repr__(self) -> str:
        """Detailed string representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"error_code='{self.error_code}', "
            f"message='{self.message}', "
            f"status_code={self.status_code})"
        )


class ValidationError(DrainsketchException):
    """
    Raised when input validation fails.

    Maps to HTTP 400 Bad Request.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if field:
            error_details["field"] = field

        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details=error_details,
            suggestions=suggestions or ["Check the input format and try again"],
        )


class GeometryError(DrainsketchException):
    """
    Raised when a geometry cannot be used for a feature.

    Used for geometry kinds that do not match an element type, or for an
    attempt to change the geometry kind of an existing feature.
    Maps to HTTP 422 Unprocessable Entity.
    """

    def __init__(
        self,
        message: str,
        geometry_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if geometry_type:
            error_details["geometry_type"] = geometry_type

        default_suggestions = [
            "Lines need at least two vertices",
            "Polygons need a closed ring of at least four positions",
            "Use the geometry kind that matches the element type",
        ]

        super().__init__(
            message=message,
            error_code="GEOMETRY_ERROR",
            status_code=422,
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )


class ProjectNotFoundError(DrainsketchException):
    """
    Raised when a saved project cannot be found.

    Maps to HTTP 404 Not Found.
    """

    def __init__(
        self,
        project_id: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        error_details["project_id"] = project_id

        super().__init__(
            message=f"Project '{project_id}' not found",
            error_code="PROJECT_NOT_FOUND",
            status_code=404,
            details=error_details,
            suggestions=["Check the project id", "List projects to find the right one"],
        )


class StorageError(DrainsketchException):
    """
    Raised when project storage operations fail.

    Maps to HTTP 500 Internal Server Error.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        project_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if operation:
            error_details["operation"] = operation
        if project_id:
            error_details["project_id"] = project_id

        default_suggestions = [
            "Try saving the project again",
            "Contact support if the problem persists",
        ]

        super().__init__(
            message=message,
            error_code="STORAGE_ERROR",
            status_code=500,
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )


class GeocodingError(DrainsketchException):
    """
    Raised when the address resolver is unavailable or fails.

    Maps to HTTP 503 Service Unavailable.
    """

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if query:
            error_details["query"] = query

        default_suggestions = [
            "Try again in a few moments",
            "Enter the coordinates manually",
        ]

        super().__init__(
            message=message,
            error_code="GEOCODING_UNAVAILABLE",
            status_code=503,
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )


class ConfigurationError(DrainsketchException):
    """
    Raised when application configuration is invalid.

    Maps to HTTP 500 Internal Server Error.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if config_key:
            error_details["config_key"] = config_key

        default_suggestions = [
            "Check environment variables are set correctly",
            "Verify configuration file syntax",
        ]

        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            status_code=500,
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )


class DrawingModeError(DrainsketchException):
    """
    Raised by a drawing surface when it rejects a mode change.

    The interaction controller tolerates this silently; mode changes are
    idempotent from the user's point of view.
    """

    def __init__(self, mode: str, details: Optional[Dict[str, Any]] = None):
        error_details = details or {}
        error_details["mode"] = mode

        super().__init__(
            message=f"Drawing surface rejected mode change to '{mode}'",
            error_code="DRAWING_MODE_ERROR",
            status_code=409,
            details=error_details,
        )


class AddressNotFoundError(DrainsketchException):
    """
    Raised when the address resolver finds no match.

    Maps to HTTP 404 Not Found.
    """

    def __init__(self, query: str, details: Optional[Dict[str, Any]] = None):
        error_details = details or {}
        error_details["query"] = query

        super().__init__(
            message=f"No address found for '{query}'",
            error_code="ADDRESS_NOT_FOUND",
            status_code=404,
            details=error_details,
            suggestions=["Check the spelling of the address", "Include the city and state"],
        )
