"""Line management service."""

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from subway.core.exceptions import DuplicateNameError, EntityNotFoundError
from subway.models.subway import Line, Station
from subway.schemas.lines import CreateLineRequest, UpdateLineRequest
from subway.services.section_service import SectionService
from subway.services.station_service import StationService

logger = structlog.get_logger(__name__)


class LineService:
    """Service for managing lines and reading their station order."""

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize the line service.

        Args:
            db: Database session
        """
        self.db = db
        self.section_service = SectionService(db)
        self.station_service = StationService(db)

    async def get_line(self, line_id: int, *, load_sections: bool = False) -> Line:
        """
        Get a line by ID.

        Args:
            line_id: Line ID
            load_sections: Whether to eager load the line's sections

        Raises:
            EntityNotFoundError: If the line does not exist
        """
        query = select(Line).where(Line.id == line_id)
        if load_sections:
            query = query.options(selectinload(Line.sections))

        result = await self.db.execute(query)
        if not (line := result.scalar_one_or_none()):
            msg = f"Line {line_id} not found."
            raise EntityNotFoundError(msg)
        return line

    async def list_lines(self) -> list[Line]:
        """List all lines with their sections loaded."""
        result = await self.db.execute(select(Line).options(selectinload(Line.sections)).order_by(Line.id))
        return list(result.scalars().all())

    async def create_line(self, request: CreateLineRequest) -> Line:
        """
        Create a line, optionally with its first section.

        The line row and its first section are committed together; if the
        section is rejected the line is not created either.

        Raises:
            DuplicateNameError: If a line with the same name already exists
            EntityNotFoundError: If a station of the initial section does not exist
        """
        await self._check_duplicate_name(request.name)

        line = Line(name=request.name, color=request.color)
        self.db.add(line)
        try:
            await self.db.flush()
            if (initial_section := request.initial_section) is not None:
                await self.section_service.create_section(line.id, initial_section, auto_commit=False)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateNameError(f"Line name already exists: {request.name}") from None
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(line)

        logger.info("line_created", line_id=line.id, name=line.name, with_section=request.initial_section is not None)
        return line

    async def update_line(self, line_id: int, request: UpdateLineRequest) -> Line:
        """
        Update line metadata.

        Raises:
            EntityNotFoundError: If the line does not exist
            DuplicateNameError: If the new name belongs to another line
        """
        line = await self.get_line(line_id)

        if request.name is not None and request.name != line.name:
            await self._check_duplicate_name(request.name)
            line.name = request.name
        if request.color is not None:
            line.color = request.color

        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent insert of the same name
            await self.db.rollback()
            raise DuplicateNameError(f"Line name already exists: {request.name}") from None
        await self.db.refresh(line)
        return line

    async def delete_line(self, line_id: int) -> None:
        """
        Delete a line and all of its sections.

        Raises:
            EntityNotFoundError: If the line does not exist
        """
        line = await self.get_line(line_id, load_sections=True)
        await self.db.delete(line)
        await self.db.commit()
        logger.info("line_deleted", line_id=line_id)

    async def get_line_stations(self, line_id: int) -> list[Station]:
        """
        Stations of a line ordered from the top station to the bottom station.

        Raises:
            EntityNotFoundError: If the line does not exist
        """
        await self.get_line(line_id)
        sections = await self.section_service.load_sections(line_id)
        station_ids = sections.sorted_station_ids()
        stations = await self.station_service.get_stations_by_ids(station_ids)
        return [stations[station_id] for station_id in station_ids]

    async def _check_duplicate_name(self, name: str) -> None:
        result = await self.db.execute(select(Line.id).where(Line.name == name))
        if result.scalar_one_or_none() is not None:
            msg = f"Line name already exists: {name}"
            raise DuplicateNameError(msg)
