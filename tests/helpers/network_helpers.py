"""
Test network factory.

Builds a small, persisted subway network so service, API and CLI tests share
the same fixture data:

    Green line:  A --5--> B --7--> C
    Unused:      D, E
"""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from subway.helpers.sections import SectionEdge
from subway.models.subway import Line, Section, Station


@dataclass
class TestNetwork:
    """Handles to the persisted fixture rows."""

    __test__ = False  # Not a test class despite the name

    stations: dict[str, Station]
    line: Line

    def station_id(self, name: str) -> int:
        return self.stations[name].id


def edge(up: int, down: int, distance: int, *, section_id: int | None = None) -> SectionEdge:
    """Shorthand for building a SectionEdge in pure tests."""
    return SectionEdge(up_station_id=up, down_station_id=down, distance=distance, id=section_id)


async def create_station(db: AsyncSession, name: str) -> Station:
    """Persist a station directly, bypassing the service."""
    station = Station(name=name)
    db.add(station)
    await db.commit()
    await db.refresh(station)
    return station


async def create_line(
    db: AsyncSession,
    name: str,
    path: list[tuple[Station, Station, int]] | None = None,
    color: str | None = None,
) -> Line:
    """Persist a line and the given (up, down, distance) sections directly."""
    line = Line(name=name, color=color)
    db.add(line)
    await db.flush()
    for up, down, distance in path or []:
        db.add(Section(line_id=line.id, up_station_id=up.id, down_station_id=down.id, distance=distance))
    await db.commit()
    await db.refresh(line)
    return line


async def get_line_sections(db: AsyncSession, line_id: int) -> list[Section]:
    """Fetch the stored sections of a line straight from the database."""
    result = await db.execute(select(Section).where(Section.line_id == line_id).order_by(Section.id))
    return list(result.scalars().all())


def as_named_edges(sections: list[Section], network: TestNetwork) -> set[tuple[str, str, int]]:
    """Render stored sections as {(up_name, down_name, distance)} for readable assertions."""
    names = {station.id: name for name, station in network.stations.items()}
    return {(names[s.up_station_id], names[s.down_station_id], s.distance) for s in sections}


async def build_network(db: AsyncSession) -> TestNetwork:
    """Create stations A-E and the Green line A -> B -> C."""
    stations = {name: await create_station(db, name) for name in ("A", "B", "C", "D", "E")}
    line = await create_line(
        db,
        "Green",
        [(stations["A"], stations["B"], 5), (stations["B"], stations["C"], 7)],
        color="green",
    )
    return TestNetwork(stations=stations, line=line)
