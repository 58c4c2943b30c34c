"""Tests for request and response schemas."""

import pytest
from pydantic import ValidationError
from subway.schemas.lines import CreateLineRequest, LineListItemResponse
from subway.schemas.sections import CreateSectionRequest, SectionResponse
from subway.schemas.stations import CreateStationRequest


class TestCreateStationRequest:
    """Tests for CreateStationRequest."""

    def test_strips_name(self) -> None:
        """Test that surrounding whitespace is removed."""
        assert CreateStationRequest(name=" Gangnam ").name == "Gangnam"

    @pytest.mark.parametrize("name", ["", "   ", "x" * 256])
    def test_rejects_invalid_names(self, name: str) -> None:
        """Test that empty, blank and overlong names are rejected."""
        with pytest.raises(ValidationError):
            CreateStationRequest(name=name)


class TestCreateSectionRequest:
    """Tests for CreateSectionRequest."""

    def test_accepts_camel_case(self) -> None:
        """Test that the JSON body uses camelCase keys."""
        request = CreateSectionRequest.model_validate({"upStationId": 1, "downStationId": 2, "distance": 10})
        assert (request.up_station_id, request.down_station_id, request.distance) == (1, 2, 10)

    def test_rejects_same_station(self) -> None:
        """Test that up and down must differ."""
        with pytest.raises(ValidationError, match="must be different"):
            CreateSectionRequest(up_station_id=1, down_station_id=1, distance=10)

    @pytest.mark.parametrize("field", ["up_station_id", "down_station_id", "distance"])
    def test_rejects_non_positive_values(self, field: str) -> None:
        """Test that ids and distance must be positive."""
        values = {"up_station_id": 1, "down_station_id": 2, "distance": 3, field: 0}
        with pytest.raises(ValidationError):
            CreateSectionRequest(**values)


class TestCreateLineRequest:
    """Tests for CreateLineRequest."""

    def test_without_initial_section(self) -> None:
        """Test that a bare line has no initial section."""
        assert CreateLineRequest(name="Blue").initial_section is None

    def test_with_initial_section(self) -> None:
        """Test that a complete first section is exposed as a section request."""
        request = CreateLineRequest.model_validate(
            {"name": "Blue", "upStationId": 1, "downStationId": 2, "distance": 7}
        )
        assert request.initial_section == CreateSectionRequest(up_station_id=1, down_station_id=2, distance=7)

    def test_rejects_partial_initial_section(self) -> None:
        """Test that the first section must be all-or-nothing."""
        with pytest.raises(ValidationError, match="provided together"):
            CreateLineRequest(name="Blue", up_station_id=1, distance=7)

    def test_rejects_same_station_initial_section(self) -> None:
        """Test that the first section's stations must differ."""
        with pytest.raises(ValidationError, match="must be different"):
            CreateLineRequest(name="Blue", up_station_id=1, down_station_id=1, distance=7)


class TestResponses:
    """Tests for response serialisation."""

    def test_section_response_dumps_camel_case(self) -> None:
        """Test that responses serialise with camelCase aliases."""
        response = SectionResponse(id=1, line_id=2, up_station_id=3, down_station_id=4, distance=5)
        assert response.model_dump(by_alias=True) == {
            "id": 1,
            "lineId": 2,
            "upStationId": 3,
            "downStationId": 4,
            "distance": 5,
        }

    def test_line_list_item_defaults(self) -> None:
        """Test that section_count defaults to zero."""
        item = LineListItemResponse(id=1, name="Blue", color=None)
        assert item.model_dump(by_alias=True)["sectionCount"] == 0
