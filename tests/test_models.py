"""Tests for database models and their constraints."""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from subway.helpers.sections import SectionEdge
from subway.models.subway import Line, Section, Station

from tests.helpers.network_helpers import TestNetwork, create_line, create_station


class TestStationModel:
    """Tests for Station."""

    async def test_timestamps_are_set(self, db_session: AsyncSession) -> None:
        """Test that created_at and updated_at are filled in on insert."""
        station = await create_station(db_session, "Gangnam")

        assert station.created_at is not None
        assert station.updated_at is not None

    async def test_name_is_unique(self, db_session: AsyncSession) -> None:
        """Test that the unique index rejects a second station with the same name."""
        await create_station(db_session, "Gangnam")

        db_session.add(Station(name="Gangnam"))
        with pytest.raises(IntegrityError):
            await db_session.flush()
        await db_session.rollback()

    async def test_repr(self, db_session: AsyncSession) -> None:
        """Test the string representation."""
        station = await create_station(db_session, "Gangnam")
        assert repr(station) == f"<Station(id={station.id}, name=Gangnam)>"


class TestSectionModel:
    """Tests for Section."""

    async def test_to_edge(self, db_session: AsyncSession, network: TestNetwork) -> None:
        """Test conversion of a stored row into an aggregate edge."""
        result = await db_session.execute(
            select(Section).where(Section.up_station_id == network.station_id("A"))
        )
        row = result.scalar_one()

        assert row.to_edge() == SectionEdge(
            up_station_id=network.station_id("A"),
            down_station_id=network.station_id("B"),
            distance=5,
            line_id=network.line.id,
            id=row.id,
        )

    @pytest.mark.parametrize("distance", [0, -1])
    async def test_distance_must_be_positive(
        self, db_session: AsyncSession, network: TestNetwork, distance: int
    ) -> None:
        """Test the distance check constraint."""
        db_session.add(
            Section(
                line_id=network.line.id,
                up_station_id=network.station_id("C"),
                down_station_id=network.station_id("D"),
                distance=distance,
            )
        )
        with pytest.raises(IntegrityError):
            await db_session.flush()
        await db_session.rollback()

    async def test_stations_must_differ(self, db_session: AsyncSession, network: TestNetwork) -> None:
        """Test the distinct stations check constraint."""
        station_id = network.station_id("D")
        db_session.add(
            Section(line_id=network.line.id, up_station_id=station_id, down_station_id=station_id, distance=1)
        )
        with pytest.raises(IntegrityError):
            await db_session.flush()
        await db_session.rollback()


class TestLineModel:
    """Tests for Line."""

    async def test_deleting_line_cascades_to_sections(self, db_session: AsyncSession) -> None:
        """Test that the foreign key removes a line's sections with it."""
        up = await create_station(db_session, "Up")
        down = await create_station(db_session, "Down")
        line = await create_line(db_session, "Blue", [(up, down, 3)])
        line_id = line.id

        # Bypass the ORM cascade: rely on ON DELETE CASCADE
        await db_session.execute(Line.__table__.delete().where(Line.id == line_id))
        await db_session.commit()

        result = await db_session.execute(select(Section.id).where(Section.line_id == line_id))
        assert result.scalars().all() == []
