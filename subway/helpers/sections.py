"""
Section path helpers.

``Sections`` is an immutable snapshot of the section edges of one line. The
edges always form a single simple directed path: exactly one top station with
no incoming edge, exactly one bottom station with no outgoing edge, and every
other station with one of each.

Mutating operations never touch the snapshot they are called on. They build
the complete new edge set and diff it against the old one, returning a
``SectionChanges`` that carries the new snapshot plus the inserts, updates and
removals a service has to persist. No database access happens here.

Stations are referenced by id throughout; the aggregate keeps two indexes
(``up station id -> edge`` and ``down station id -> edge``) instead of relying
on object identity.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace

from subway.core.exceptions import EntityNotFoundError, InvalidRequestError


@dataclass(frozen=True)
class SectionEdge:
    """Directed, distance-weighted edge ``up_station_id -> down_station_id``."""

    up_station_id: int
    down_station_id: int
    distance: int
    line_id: int | None = None
    id: int | None = None

    def with_up_station(self, station_id: int) -> SectionEdge:
        return replace(self, up_station_id=station_id)

    def with_down_station(self, station_id: int) -> SectionEdge:
        return replace(self, down_station_id=station_id)

    def with_distance(self, distance: int) -> SectionEdge:
        return replace(self, distance=distance)


@dataclass(frozen=True)
class SectionChanges:
    """Result of a path mutation: the new snapshot and the writes it implies."""

    sections: Sections
    inserted: tuple[SectionEdge, ...] = ()
    updated: tuple[SectionEdge, ...] = ()
    removed: tuple[SectionEdge, ...] = ()


def diff_sections(old: Sections, new: Sections) -> SectionChanges:
    """
    Derive the persistence operations that turn ``old`` into ``new``.

    Edges without an id (or with an id unknown to ``old``) are inserts, edges
    whose id exists in both snapshots but whose values differ are updates, and
    ids that no longer appear in ``new`` are removals.

    Examples:
        >>> old = Sections([SectionEdge(1, 2, 10, id=7)])
        >>> new = Sections([SectionEdge(3, 2, 6, id=7), SectionEdge(1, 3, 4)])
        >>> changes = diff_sections(old, new)
        >>> [edge.id for edge in changes.updated], len(changes.inserted)
        ([7], 1)
    """
    old_by_id = {edge.id: edge for edge in old if edge.id is not None}
    kept_ids: set[int] = set()
    inserted: list[SectionEdge] = []
    updated: list[SectionEdge] = []

    for edge in new:
        if edge.id is None or edge.id not in old_by_id:
            inserted.append(edge)
            continue
        kept_ids.add(edge.id)
        if edge != old_by_id[edge.id]:
            updated.append(edge)

    removed = tuple(edge for edge_id, edge in old_by_id.items() if edge_id not in kept_ids)
    return SectionChanges(
        sections=new,
        inserted=tuple(inserted),
        updated=tuple(updated),
        removed=removed,
    )


class Sections:
    """Immutable single-path aggregate over the sections of one line."""

    def __init__(self, edges: Iterable[SectionEdge] = ()) -> None:
        self._edges: tuple[SectionEdge, ...] = tuple(edges)
        self._by_up: dict[int, SectionEdge] = {edge.up_station_id: edge for edge in self._edges}
        self._by_down: dict[int, SectionEdge] = {edge.down_station_id: edge for edge in self._edges}

    # ==================== Queries ====================

    @property
    def edges(self) -> tuple[SectionEdge, ...]:
        return self._edges

    @property
    def is_empty(self) -> bool:
        return not self._edges

    @property
    def station_ids(self) -> frozenset[int]:
        return frozenset(self._by_up) | frozenset(self._by_down)

    @property
    def top_station_id(self) -> int | None:
        """Station with no incoming edge, or None for an empty path."""
        return next((station_id for station_id in self._by_up if station_id not in self._by_down), None)

    @property
    def bottom_station_id(self) -> int | None:
        """Station with no outgoing edge, or None for an empty path."""
        return next((station_id for station_id in self._by_down if station_id not in self._by_up), None)

    def contains_station(self, station_id: int) -> bool:
        return station_id in self._by_up or station_id in self._by_down

    def is_top_station(self, station_id: int) -> bool:
        return station_id in self._by_up and station_id not in self._by_down

    def is_bottom_station(self, station_id: int) -> bool:
        return station_id in self._by_down and station_id not in self._by_up

    def sorted_station_ids(self) -> list[int]:
        """
        Return station ids ordered from the top station to the bottom station.

        Builds an ``up -> down`` mapping, finds the single station that never
        appears as a down station and follows the links from there.

        Raises:
            EntityNotFoundError: If the edges do not form a single path (no
                unique top station, a broken link or a repeated station)
        """
        if self.is_empty:
            return []

        links = {edge.up_station_id: edge.down_station_id for edge in self._edges}
        down_station_ids = set(links.values())
        top_ids = [station_id for station_id in links if station_id not in down_station_ids]
        if len(top_ids) != 1 or len(links) != len(self._edges):
            msg = "Top station of the line could not be determined."
            raise EntityNotFoundError(msg)

        station_id = top_ids[0]
        ordered = [station_id]
        for _ in range(len(links)):
            if station_id not in links or links[station_id] in ordered:
                msg = "Sections of the line do not form a single path."
                raise EntityNotFoundError(msg)
            station_id = links[station_id]
            ordered.append(station_id)
        return ordered

    # ==================== Mutations ====================

    def insert(self, new_section: SectionEdge) -> SectionChanges:
        """
        Add a section while keeping the path simple and unbranched.

        Cases, checked in order:
        1. Empty path: the section becomes the only edge.
        2. Its down station is the current top: prepended as the new top.
        3. Its up station is the current bottom: appended as the new bottom.
        4. Its up station starts an existing edge: that edge is split and now
           starts at the new section's down station.
        5. Otherwise its down station ends an existing edge: that edge is split
           and now ends at the new section's up station.

        Splitting shortens the existing edge by the new section's distance,
        which must therefore be strictly smaller.

        Raises:
            InvalidRequestError: If the section is malformed, shares no station
                with the path, would duplicate an edge or close a cycle, or is
                too long to split the edge it lands on
        """
        self._validate_edge(new_section)

        if self.is_empty:
            return self._changed_to([new_section])

        self._validate_section_to_insert(new_section)

        if self.is_top_station(new_section.down_station_id):
            return self._changed_to([new_section, *self._edges])

        if self.is_bottom_station(new_section.up_station_id):
            return self._changed_to([*self._edges, new_section])

        if (old_section := self._by_up.get(new_section.up_station_id)) is not None:
            shrunk = old_section.with_up_station(new_section.down_station_id)
        else:
            old_section = self._by_down[new_section.down_station_id]
            shrunk = old_section.with_down_station(new_section.up_station_id)

        if new_section.distance >= old_section.distance:
            msg = (
                "New section distance must be smaller than the existing section it splits "
                f"({new_section.distance} >= {old_section.distance})."
            )
            raise InvalidRequestError(msg)

        shrunk = shrunk.with_distance(old_section.distance - new_section.distance)
        edges = [shrunk if edge is old_section else edge for edge in self._edges]
        return self._changed_to([*edges, new_section])

    def delete_station(self, station_id: int) -> SectionChanges:
        """
        Remove a station from the path.

        An end station simply loses its one edge. An interior station has its
        incoming and outgoing edges merged into one edge spanning both, with
        the summed distance; the merged edge keeps the incoming edge's id so it
        persists as an update.

        Raises:
            InvalidRequestError: If the path is empty or has a single section
            EntityNotFoundError: If the station is not on the path
        """
        if self.is_empty:
            msg = "Line has no sections."
            raise InvalidRequestError(msg)
        if len(self._edges) == 1:
            msg = "Cannot remove a station from a line with only one section."
            raise InvalidRequestError(msg)

        incoming = self._by_down.get(station_id)
        outgoing = self._by_up.get(station_id)

        if incoming is None and outgoing is None:
            msg = f"Station {station_id} is not on this line."
            raise EntityNotFoundError(msg)

        if incoming is None or outgoing is None:
            end_section = incoming if incoming is not None else outgoing
            return self._changed_to(edge for edge in self._edges if edge is not end_section)

        merged = incoming.with_down_station(outgoing.down_station_id).with_distance(
            incoming.distance + outgoing.distance
        )
        return self._changed_to(
            merged if edge is incoming else edge for edge in self._edges if edge is not outgoing
        )

    # ==================== Internals ====================

    def _changed_to(self, edges: Iterable[SectionEdge]) -> SectionChanges:
        return diff_sections(self, Sections(edges))

    @staticmethod
    def _validate_edge(section: SectionEdge) -> None:
        if section.up_station_id == section.down_station_id:
            msg = "Up station and down station must be different."
            raise InvalidRequestError(msg)
        if section.distance <= 0:
            msg = f"Section distance must be positive, got {section.distance}."
            raise InvalidRequestError(msg)

    def _validate_section_to_insert(self, section: SectionEdge) -> None:
        has_up = self.contains_station(section.up_station_id)
        has_down = self.contains_station(section.down_station_id)

        if not (has_up or has_down):
            msg = "At least one station of the section must already be on the line."
            raise InvalidRequestError(msg)
        if has_up and has_down:
            msg = "Both stations of the section are already on the line."
            raise InvalidRequestError(msg)

    # ==================== Dunder ====================

    def __len__(self) -> int:
        return len(self._edges)

    def __iter__(self) -> Iterator[SectionEdge]:
        return iter(self._edges)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sections):
            return NotImplemented
        return frozenset(self._edges) == frozenset(other._edges)

    def __hash__(self) -> int:
        return hash(frozenset(self._edges))

    def __repr__(self) -> str:
        return f"<Sections(edges={len(self._edges)}, top={self.top_station_id}, bottom={self.bottom_station_id})>"
