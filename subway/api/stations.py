"""Stations API endpoints."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from subway.core.config import settings
from subway.core.database import get_db
from subway.models.subway import Station
from subway.schemas.stations import CreateStationRequest, StationResponse
from subway.services.station_service import StationService

router = APIRouter(prefix="/stations", tags=["stations"])


@router.post("", response_model=StationResponse, status_code=status.HTTP_201_CREATED)
async def create_station(
    request: CreateStationRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> Station:
    """
    Create a station.

    Args:
        request: Station creation request
        response: Outgoing response (receives the Location header)
        db: Database session

    Returns:
        Created station

    Raises:
        DuplicateNameError: 409 if the name is already taken
    """
    station = await StationService(db).create_station(request)
    response.headers["Location"] = f"{settings.API_PREFIX}/stations/{station.id}"
    return station


@router.get("", response_model=list[StationResponse])
async def list_stations(db: AsyncSession = Depends(get_db)) -> list[Station]:
    """List all stations."""
    return await StationService(db).list_stations()


@router.get("/{station_id}", response_model=StationResponse)
async def get_station(station_id: int, db: AsyncSession = Depends(get_db)) -> Station:
    """Get a single station."""
    return await StationService(db).get_station(station_id)


@router.delete("/{station_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_station(station_id: int, db: AsyncSession = Depends(get_db)) -> None:
    """
    Delete a station.

    Stations still used by a line must be removed from that line first.

    Raises:
        EntityNotFoundError: 404 if the station does not exist
        InvalidRequestError: 400 if a line still uses the station
    """
    await StationService(db).delete_station(station_id)
