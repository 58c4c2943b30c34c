"""Subway network models: stations, lines and the sections joining them."""

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from subway.helpers.sections import SectionEdge
from subway.models.base import BaseModel


class Station(BaseModel):
    """Station model. Names are unique across the whole network."""

    __tablename__ = "stations"

    name: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        """String representation of the station."""
        return f"<Station(id={self.id}, name={self.name})>"


class Line(BaseModel):
    """Line model owning an ordered path of sections."""

    __tablename__ = "lines"

    name: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    color: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    # Relationships
    sections: Mapped[list["Section"]] = relationship(
        back_populates="line",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        """String representation of the line."""
        return f"<Line(id={self.id}, name={self.name})>"


class Section(BaseModel):
    """Directed edge between two stations on a line."""

    __tablename__ = "sections"

    line_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("lines.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    up_station_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("stations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    down_station_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("stations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    distance: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # Relationships
    line: Mapped[Line] = relationship(back_populates="sections")
    up_station: Mapped[Station] = relationship(foreign_keys=[up_station_id])
    down_station: Mapped[Station] = relationship(foreign_keys=[down_station_id])

    __table_args__ = (
        CheckConstraint("distance > 0", name="ck_sections_distance_positive"),
        CheckConstraint("up_station_id <> down_station_id", name="ck_sections_distinct_stations"),
    )

    def to_edge(self) -> SectionEdge:
        """Convert the row into the value used by the ``Sections`` aggregate."""
        return SectionEdge(
            up_station_id=self.up_station_id,
            down_station_id=self.down_station_id,
            distance=self.distance,
            line_id=self.line_id,
            id=self.id,
        )

    def __repr__(self) -> str:
        """String representation of the section."""
        return (
            f"<Section(id={self.id}, line={self.line_id}, "
            f"{self.up_station_id}->{self.down_station_id}, distance={self.distance})>"
        )
