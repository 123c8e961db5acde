"""
Tests for the custom exception hierarchy.
"""

import pytest

from drainsketch.core.errors import (
    AddressNotFoundError,
    ConfigurationError,
    DrainsketchException,
    DrawingModeError,
    GeocodingError,
    GeometryError,
    ProjectNotFoundError,
    StorageError,
    ValidationError,
)


class TestDrainsketchException:
    """Tests for the base exception."""

    def test_basic_fields(self) -> None:
        exc = DrainsketchException("Something broke", error_code="TEST_ERROR")

        assert exc.message == "Something broke"
        assert exc.error_code == "TEST_ERROR"
        assert exc.status_code == 500
        assert exc.details == {}
        assert exc.suggestions == []

    def test_str_and_repr(self) -> None:
        exc = DrainsketchException("Something broke", error_code="TEST_ERROR", status_code=418)

        assert str(exc) == "TEST_ERROR: Something broke"
        assert "status_code=418" in repr(exc)

    def test_to_dict(self) -> None:
        exc = DrainsketchException(
            "Something broke",
            error_code="TEST_ERROR",
            details={"key": "value"},
            suggestions=["Try again"],
        )

        assert exc.to_dict() == {
            "error_code": "TEST_ERROR",
            "message": "Something broke",
            "details": {"key": "value"},
            "suggestions": ["Try again"],
        }


class TestSpecificExceptions:
    """Tests for the concrete exception types."""

    @pytest.mark.parametrize(
        "exc, code, status",
        [
            (ValidationError("Bad input", field="name"), "VALIDATION_ERROR", 400),
            (GeometryError("Wrong kind", geometry_type="Point"), "GEOMETRY_ERROR", 422),
            (ProjectNotFoundError("p-1"), "PROJECT_NOT_FOUND", 404),
            (StorageError("Disk full", operation="save"), "STORAGE_ERROR", 500),
            (GeocodingError("Down", query="123 Main"), "GEOCODING_UNAVAILABLE", 503),
            (ConfigurationError("No token", config_key="MAPBOX_TOKEN"), "CONFIGURATION_ERROR", 500),
            (DrawingModeError("select"), "DRAWING_MODE_ERROR", 409),
            (AddressNotFoundError("1 Nowhere Lane"), "ADDRESS_NOT_FOUND", 404),
        ],
    )
    def test_codes_and_status(self, exc: DrainsketchException, code: str, status: int) -> None:
        assert isinstance(exc, DrainsketchException)
        assert exc.error_code == code
        assert exc.status_code == status

    def test_validation_error_field(self) -> None:
        exc = ValidationError("Name and address required", field="name")

        assert exc.details["field"] == "name"
        assert exc.suggestions

    def test_project_not_found_message(self) -> None:
        exc = ProjectNotFoundError("abc")

        assert exc.message == "Project 'abc' not found"
        assert exc.details["project_id"] == "abc"

    def test_storage_error_details(self) -> None:
        exc = StorageError("Disk full", operation="save", project_id="abc")
        assert exc.details == {"operation": "save", "project_id": "abc"}

    def test_custom_suggestions_replace_defaults(self) -> None:
        exc = GeocodingError("Down", suggestions=["Wait"])
        assert exc.suggestions == ["Wait"]

    def test_can_be_raised(self) -> None:
        with pytest.raises(DrainsketchException) as exc_info:
            raise AddressNotFoundError("1 Nowhere Lane")

        assert exc_info.value.details["query"] == "1 Nowhere Lane"
