"""Pydantic schemas for station management."""

from pydantic import Field, field_validator

from subway.schemas.base import CamelModel


class CreateStationRequest(CamelModel):
    """Request to create a new station."""

    name: str = Field(..., min_length=1, max_length=255, description="Station name (unique)")

    @field_validator("name", mode="after")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Reject names made only of whitespace."""
        if not v.strip():
            msg = "Station name must not be blank"
            raise ValueError(msg)
        return v.strip()


class StationResponse(CamelModel):
    """Station as returned by the API."""

    id: int
    name: str
