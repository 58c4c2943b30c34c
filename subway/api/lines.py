"""Lines API endpoints, including section management on a line."""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from subway.core.config import settings
from subway.core.database import get_db
from subway.models.subway import Section
from subway.schemas.lines import (
    CreateLineRequest,
    LineListItemResponse,
    LineResponse,
    UpdateLineRequest,
)
from subway.schemas.sections import CreateSectionRequest, SectionResponse
from subway.schemas.stations import StationResponse
from subway.services.line_service import LineService
from subway.services.section_service import SectionService

router = APIRouter(prefix="/lines", tags=["lines"])


async def _line_response(service: LineService, line_id: int) -> LineResponse:
    line = await service.get_line(line_id)
    stations = await service.get_line_stations(line_id)
    return LineResponse(
        id=line.id,
        name=line.name,
        color=line.color,
        stations=[StationResponse.model_validate(station) for station in stations],
    )


# ==================== Line Endpoints ====================


@router.post("", response_model=LineResponse, status_code=status.HTTP_201_CREATED)
async def create_line(
    request: CreateLineRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> LineResponse:
    """
    Create a line, optionally together with its first section.

    Args:
        request: Line creation request
        response: Outgoing response (receives the Location header)
        db: Database session

    Returns:
        Created line with its stations in path order
    """
    service = LineService(db)
    line = await service.create_line(request)
    response.headers["Location"] = f"{settings.API_PREFIX}/lines/{line.id}"
    return await _line_response(service, line.id)


@router.get("", response_model=list[LineListItemResponse])
async def list_lines(db: AsyncSession = Depends(get_db)) -> list[LineListItemResponse]:
    """List all lines with their section counts."""
    lines = await LineService(db).list_lines()
    return [
        LineListItemResponse(
            id=line.id,
            name=line.name,
            color=line.color,
            section_count=len(line.sections),
        )
        for line in lines
    ]


@router.get("/{line_id}", response_model=LineResponse)
async def get_line(line_id: int, db: AsyncSession = Depends(get_db)) -> LineResponse:
    """Get a line with its stations ordered from top to bottom."""
    return await _line_response(LineService(db), line_id)


@router.put("/{line_id}", response_model=LineResponse)
async def update_line(
    line_id: int,
    request: UpdateLineRequest,
    db: AsyncSession = Depends(get_db),
) -> LineResponse:
    """Update line name and/or colour."""
    service = LineService(db)
    await service.update_line(line_id, request)
    return await _line_response(service, line_id)


@router.delete("/{line_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_line(line_id: int, db: AsyncSession = Depends(get_db)) -> None:
    """Delete a line and all of its sections."""
    await LineService(db).delete_line(line_id)


# ==================== Section Endpoints ====================


@router.post("/{line_id}", response_model=SectionResponse, status_code=status.HTTP_201_CREATED)
async def create_section(
    line_id: int,
    request: CreateSectionRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> Section:
    """
    Add a section to a line.

    The section is placed at the top, at the bottom, or splits an existing
    section, depending on which of its stations is already on the line.

    Args:
        line_id: Line ID
        request: Up station, down station and distance
        response: Outgoing response (receives the Location header)
        db: Database session

    Returns:
        Created section

    Raises:
        EntityNotFoundError: 404 if the line or a station does not exist
        InvalidRequestError: 400 if the section cannot be placed on the path
    """
    section = await SectionService(db).create_section(line_id, request)
    response.headers["Location"] = f"{settings.API_PREFIX}/lines/{line_id}/{section.id}"
    return section


@router.get("/{line_id}/sections", response_model=list[SectionResponse])
async def list_sections(line_id: int, db: AsyncSession = Depends(get_db)) -> list[Section]:
    """List the stored sections of a line (unordered)."""
    return await SectionService(db).list_sections(line_id)


@router.delete("/{line_id}/sections", status_code=status.HTTP_204_NO_CONTENT)
async def delete_station_from_line(
    line_id: int,
    station_id: int = Query(..., alias="stationId", gt=0),
    db: AsyncSession = Depends(get_db),
) -> None:
    """
    Remove a station from a line.

    Removing an interior station merges its two sections into one whose
    distance is their sum.

    Raises:
        EntityNotFoundError: 404 if the line does not exist or the station is not on it
        InvalidRequestError: 400 if the line has only one section
    """
    await SectionService(db).delete_station(line_id, station_id)
