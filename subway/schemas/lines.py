"""Pydantic schemas for line management."""

from typing import Self

from pydantic import Field, model_validator

from subway.schemas.base import CamelModel
from subway.schemas.sections import CreateSectionRequest
from subway.schemas.stations import StationResponse


class CreateLineRequest(CamelModel):
    """
    Request to create a new line.

    The first section may be given inline; it must then be complete
    (``upStationId``, ``downStationId`` and ``distance`` together).
    """

    name: str = Field(..., min_length=1, max_length=255, description="Line name (unique)")
    color: str | None = Field(None, max_length=50, description="Display colour, e.g. 'bg-green-600'")
    up_station_id: int | None = Field(None, gt=0)
    down_station_id: int | None = Field(None, gt=0)
    distance: int | None = Field(None, gt=0)

    @model_validator(mode="after")
    def validate_initial_section(self) -> Self:
        """Require all or none of the initial section fields."""
        fields = (self.up_station_id, self.down_station_id, self.distance)
        provided = [value is not None for value in fields]
        if any(provided) and not all(provided):
            msg = "upStationId, downStationId and distance must be provided together"
            raise ValueError(msg)
        if all(provided) and self.up_station_id == self.down_station_id:
            msg = "upStationId and downStationId must be different"
            raise ValueError(msg)
        return self

    @property
    def initial_section(self) -> CreateSectionRequest | None:
        """The inline first section, if any."""
        if self.up_station_id is None or self.down_station_id is None or self.distance is None:
            return None
        return CreateSectionRequest(
            up_station_id=self.up_station_id,
            down_station_id=self.down_station_id,
            distance=self.distance,
        )


class UpdateLineRequest(CamelModel):
    """Request to update line metadata. Only provided fields change."""

    name: str | None = Field(None, min_length=1, max_length=255)
    color: str | None = Field(None, max_length=50)


class LineListItemResponse(CamelModel):
    """Line summary used in list responses."""

    id: int
    name: str
    color: str | None
    section_count: int = 0


class LineResponse(CamelModel):
    """Line with its stations ordered from top to bottom."""

    id: int
    name: str
    color: str | None
    stations: list[StationResponse] = Field(default_factory=list)
