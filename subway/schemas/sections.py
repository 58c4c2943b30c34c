"""Pydantic schemas for sections (edges between stations on a line)."""

from typing import Self

from pydantic import Field, model_validator

from subway.schemas.base import CamelModel


class CreateSectionRequest(CamelModel):
    """Request body for ``POST /lines/{id}``: one new section on the line."""

    up_station_id: int = Field(..., gt=0, description="Station the section starts from")
    down_station_id: int = Field(..., gt=0, description="Station the section leads to")
    distance: int = Field(..., gt=0, description="Positive distance between the two stations")

    @model_validator(mode="after")
    def validate_distinct_stations(self) -> Self:
        """A section cannot start and end at the same station."""
        if self.up_station_id == self.down_station_id:
            msg = "upStationId and downStationId must be different"
            raise ValueError(msg)
        return self


class SectionResponse(CamelModel):
    """Stored section of a line."""

    id: int
    line_id: int
    up_station_id: int
    down_station_id: int
    distance: int
