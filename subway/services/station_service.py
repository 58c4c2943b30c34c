"""Station management service."""

from collections.abc import Iterable

import structlog
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from subway.core.exceptions import DuplicateNameError, EntityNotFoundError, InvalidRequestError
from subway.models.subway import Section, Station
from subway.schemas.stations import CreateStationRequest

logger = structlog.get_logger(__name__)


class StationService:
    """Service for creating, listing and deleting stations."""

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize the station service.

        Args:
            db: Database session
        """
        self.db = db

    async def create_station(self, request: CreateStationRequest) -> Station:
        """
        Create a station with a unique name.

        Args:
            request: Station creation request

        Returns:
            Created station

        Raises:
            DuplicateNameError: If a station with the same name already exists
        """
        await self._check_duplicate_name(request.name)

        station = Station(name=request.name)
        self.db.add(station)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent insert of the same name
            await self.db.rollback()
            raise DuplicateNameError(f"Station name already exists: {request.name}") from None
        await self.db.refresh(station)

        logger.info("station_created", station_id=station.id, name=station.name)
        return station

    async def list_stations(self) -> list[Station]:
        """List all stations ordered by id."""
        result = await self.db.execute(select(Station).order_by(Station.id))
        return list(result.scalars().all())

    async def get_station(self, station_id: int) -> Station:
        """
        Get a station by ID.

        Raises:
            EntityNotFoundError: If the station does not exist
        """
        if (station := await self.db.get(Station, station_id)) is None:
            msg = f"Station {station_id} not found."
            raise EntityNotFoundError(msg)
        return station

    async def get_stations_by_ids(self, station_ids: Iterable[int]) -> dict[int, Station]:
        """
        Load several stations at once.

        Args:
            station_ids: Station IDs to load

        Returns:
            Mapping of station ID to station

        Raises:
            EntityNotFoundError: If any of the IDs does not exist
        """
        wanted = set(station_ids)
        if not wanted:
            return {}

        result = await self.db.execute(select(Station).where(Station.id.in_(wanted)))
        stations = {station.id: station for station in result.scalars().all()}

        if missing := sorted(wanted - stations.keys()):
            msg = f"Station(s) not found: {', '.join(str(station_id) for station_id in missing)}."
            raise EntityNotFoundError(msg)
        return stations

    async def delete_station(self, station_id: int) -> None:
        """
        Delete a station that no line uses any more.

        Raises:
            EntityNotFoundError: If the station does not exist
            InvalidRequestError: If a section of any line still references it
        """
        station = await self.get_station(station_id)

        in_use = await self.db.execute(
            select(Section.id)
            .where(or_(Section.up_station_id == station_id, Section.down_station_id == station_id))
            .limit(1)
        )
        if in_use.scalar_one_or_none() is not None:
            msg = f"Station {station_id} is still part of a line; remove it from the line first."
            raise InvalidRequestError(msg)

        await self.db.delete(station)
        await self.db.commit()
        logger.info("station_deleted", station_id=station_id)

    async def _check_duplicate_name(self, name: str) -> None:
        result = await self.db.execute(select(Station.id).where(Station.name == name))
        if result.scalar_one_or_none() is not None:
            msg = f"Station name already exists: {name}"
            raise DuplicateNameError(msg)
