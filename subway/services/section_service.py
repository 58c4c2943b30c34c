"""Section management service.

Loads the current edges of a line into a ``Sections`` snapshot, lets the
aggregate compute the new path, and persists the resulting inserts, updates
and removals in a single commit.
"""

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from subway.core.exceptions import EntityNotFoundError
from subway.core.telemetry import service_span
from subway.helpers.sections import SectionChanges, SectionEdge, Sections
from subway.models.subway import Line, Section
from subway.schemas.sections import CreateSectionRequest
from subway.services.station_service import StationService

logger = structlog.get_logger(__name__)


class SectionService:
    """Service for inserting sections into and removing stations from a line."""

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize the section service.

        Args:
            db: Database session
        """
        self.db = db
        self.station_service = StationService(db)

    async def list_sections(self, line_id: int) -> list[Section]:
        """
        List the stored sections of a line.

        Raises:
            EntityNotFoundError: If the line does not exist
        """
        await self._ensure_line_exists(line_id)
        return await self._load_rows(line_id)

    async def load_sections(self, line_id: int) -> Sections:
        """Build a fresh ``Sections`` snapshot from the stored rows of a line."""
        return Sections(row.to_edge() for row in await self._load_rows(line_id))

    async def create_section(
        self,
        line_id: int,
        request: CreateSectionRequest,
        *,
        auto_commit: bool = True,
    ) -> Section:
        """
        Insert a section into a line's path.

        A section landing in the middle of the path splits an existing one:
        the existing row is shortened (update) and the new row is inserted,
        both in the same transaction.

        Args:
            line_id: Line to add the section to
            request: Stations and distance of the new section
            auto_commit: Commit when done; pass False to let the caller commit

        Returns:
            The newly inserted section row

        Raises:
            EntityNotFoundError: If the line or either station does not exist
            InvalidRequestError: If the section cannot be placed on the path
        """
        await self._ensure_line_exists(line_id)
        await self.station_service.get_stations_by_ids([request.up_station_id, request.down_station_id])

        rows = await self._load_rows(line_id)
        sections = Sections(row.to_edge() for row in rows)
        new_edge = SectionEdge(
            up_station_id=request.up_station_id,
            down_station_id=request.down_station_id,
            distance=request.distance,
            line_id=line_id,
        )

        with service_span("insert_section", "section-service", line_id=line_id) as span:
            changes = sections.insert(new_edge)
            span.set_attribute("section.updated", len(changes.updated))

        inserted = await self._apply_changes(line_id, rows, changes, auto_commit=auto_commit)
        created = inserted[0]

        logger.info(
            "section_created",
            line_id=line_id,
            section_id=created.id,
            up_station_id=created.up_station_id,
            down_station_id=created.down_station_id,
            distance=created.distance,
            split=bool(changes.updated),
        )
        return created

    async def delete_station(self, line_id: int, station_id: int) -> None:
        """
        Remove a station from a line, merging its neighbouring sections if needed.

        Raises:
            EntityNotFoundError: If the line does not exist or the station is not on it
            InvalidRequestError: If the line has fewer than two sections
        """
        await self._ensure_line_exists(line_id)

        rows = await self._load_rows(line_id)
        sections = Sections(row.to_edge() for row in rows)

        with service_span("delete_station", "section-service", line_id=line_id, station_id=station_id) as span:
            changes = sections.delete_station(station_id)
            span.set_attribute("section.merged", bool(changes.updated))

        await self._apply_changes(line_id, rows, changes)

        logger.info(
            "station_removed_from_line",
            line_id=line_id,
            station_id=station_id,
            merged=bool(changes.updated),
            remaining_sections=len(changes.sections),
        )

    async def _ensure_line_exists(self, line_id: int) -> None:
        if await self.db.get(Line, line_id) is None:
            msg = f"Line {line_id} not found."
            raise EntityNotFoundError(msg)

    async def _load_rows(self, line_id: int) -> list[Section]:
        result = await self.db.execute(select(Section).where(Section.line_id == line_id).order_by(Section.id))
        return list(result.scalars().all())

    async def _apply_changes(
        self,
        line_id: int,
        rows: list[Section],
        changes: SectionChanges,
        *,
        auto_commit: bool = True,
    ) -> list[Section]:
        """
        Persist the writes computed by the aggregate.

        Returns:
            Rows created for ``changes.inserted``, in the same order
        """
        rows_by_id = {row.id: row for row in rows}
        inserted: list[Section] = []

        try:
            for edge in changes.removed:
                await self.db.delete(rows_by_id[edge.id])

            for edge in changes.updated:
                row = rows_by_id[edge.id]
                row.up_station_id = edge.up_station_id
                row.down_station_id = edge.down_station_id
                row.distance = edge.distance

            for edge in changes.inserted:
                row = Section(
                    line_id=line_id,
                    up_station_id=edge.up_station_id,
                    down_station_id=edge.down_station_id,
                    distance=edge.distance,
                )
                self.db.add(row)
                inserted.append(row)

            await self.db.flush()
            if auto_commit:
                await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(
                "section_changes_failed",
                line_id=line_id,
                inserted=len(changes.inserted),
                updated=len(changes.updated),
                removed=len(changes.removed),
            )
            raise

        for row in inserted:
            await self.db.refresh(row)
        return inserted
