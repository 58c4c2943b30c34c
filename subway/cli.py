#!/usr/bin/env python3
"""CLI tool for managing the subway network from a terminal.

Usage:
    # Create stations
    python -m subway.cli create-station "Gangnam"

    # Create a line and give it a first section
    python -m subway.cli create-line "Line 2" --color green
    python -m subway.cli add-section 1 1 2 10

    # Show a line's stations in order
    python -m subway.cli show-line 1

    # Remove a station from a line (neighbouring sections are merged)
    python -m subway.cli remove-station 1 2
"""

import argparse
import asyncio
import sys

from sqlalchemy.ext.asyncio import AsyncSession

from subway.core.database import get_session_factory
from subway.core.exceptions import SubwayError
from subway.schemas.lines import CreateLineRequest
from subway.schemas.sections import CreateSectionRequest
from subway.schemas.stations import CreateStationRequest
from subway.services.line_service import LineService
from subway.services.section_service import SectionService
from subway.services.station_service import StationService


async def cmd_create_station(args: argparse.Namespace, session: AsyncSession) -> int:
    """
    Create a new station.

    Args:
        args: Parsed command-line arguments
        session: Database session

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        station = await StationService(session).create_station(CreateStationRequest(name=args.name))
    except SubwayError as e:
        print(f"❌ Error: {e.message}", file=sys.stderr)
        return 1

    print(f"✅ Created station {station.id}: {station.name}")
    return 0


async def cmd_list_stations(args: argparse.Namespace, session: AsyncSession) -> int:
    """List all stations."""
    stations = await StationService(session).list_stations()
    if not stations:
        print("No stations found.")
        return 0

    print(f"{'ID':>6}  Name")
    for station in stations:
        print(f"{station.id:>6}  {station.name}")
    return 0


async def cmd_create_line(args: argparse.Namespace, session: AsyncSession) -> int:
    """Create a new line without sections."""
    try:
        line = await LineService(session).create_line(CreateLineRequest(name=args.name, color=args.color))
    except SubwayError as e:
        print(f"❌ Error: {e.message}", file=sys.stderr)
        return 1

    print(f"✅ Created line {line.id}: {line.name}")
    return 0


async def cmd_add_section(args: argparse.Namespace, session: AsyncSession) -> int:
    """
    Add a section to a line.

    Args:
        args: Parsed command-line arguments (line_id, up_station_id, down_station_id, distance)
        session: Database session

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        request = CreateSectionRequest(
            up_station_id=args.up_station_id,
            down_station_id=args.down_station_id,
            distance=args.distance,
        )
    except ValueError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1

    try:
        section = await SectionService(session).create_section(args.line_id, request)
    except SubwayError as e:
        print(f"❌ Error: {e.message}", file=sys.stderr)
        return 1

    print(
        f"✅ Added section {section.id} on line {section.line_id}: "
        f"{section.up_station_id} -> {section.down_station_id} ({section.distance})"
    )
    return 0


async def cmd_remove_station(args: argparse.Namespace, session: AsyncSession) -> int:
    """Remove a station from a line."""
    try:
        await SectionService(session).delete_station(args.line_id, args.station_id)
    except SubwayError as e:
        print(f"❌ Error: {e.message}", file=sys.stderr)
        return 1

    print(f"✅ Removed station {args.station_id} from line {args.line_id}")
    return 0


async def cmd_show_line(args: argparse.Namespace, session: AsyncSession) -> int:
    """Print a line's stations from top to bottom."""
    service = LineService(session)
    try:
        line = await service.get_line(args.line_id)
        stations = await service.get_line_stations(args.line_id)
    except SubwayError as e:
        print(f"❌ Error: {e.message}", file=sys.stderr)
        return 1

    print(f"{line.name} (id={line.id}, color={line.color or '-'})")
    if not stations:
        print("   (no sections)")
        return 0
    print("   " + " -> ".join(station.name for station in stations))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per handler."""
    parser = argparse.ArgumentParser(
        description="Subway network management CLI tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    create_station_parser = subparsers.add_parser("create-station", help="Create a new station")
    create_station_parser.add_argument("name", type=str, help="Station name (must be unique)")

    subparsers.add_parser("list-stations", help="List all stations")

    create_line_parser = subparsers.add_parser("create-line", help="Create a new line without sections")
    create_line_parser.add_argument("name", type=str, help="Line name (must be unique)")
    create_line_parser.add_argument("--color", type=str, default=None, help="Display colour")

    add_section_parser = subparsers.add_parser(
        "add-section",
        help="Add a section to a line",
        description="Add a section at the top, at the bottom, or splitting an existing section.",
    )
    add_section_parser.add_argument("line_id", type=int, help="Line ID")
    add_section_parser.add_argument("up_station_id", type=int, help="Up station ID")
    add_section_parser.add_argument("down_station_id", type=int, help="Down station ID")
    add_section_parser.add_argument("distance", type=int, help="Positive distance")

    remove_station_parser = subparsers.add_parser(
        "remove-station",
        help="Remove a station from a line",
        description="Remove a station; an interior station's two sections are merged.",
    )
    remove_station_parser.add_argument("line_id", type=int, help="Line ID")
    remove_station_parser.add_argument("station_id", type=int, help="Station ID")

    show_line_parser = subparsers.add_parser("show-line", help="Show a line's stations in order")
    show_line_parser.add_argument("line_id", type=int, help="Line ID")

    return parser


COMMAND_HANDLERS = {
    "create-station": cmd_create_station,
    "list-stations": cmd_list_stations,
    "create-line": cmd_create_line,
    "add-section": cmd_add_section,
    "remove-station": cmd_remove_station,
    "show-line": cmd_show_line,
}


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the CLI tool.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if handler := COMMAND_HANDLERS.get(args.command):

        async def run_with_session() -> int:
            async with get_session_factory()() as session:
                try:
                    return await handler(args, session)
                except Exception as e:
                    print(f"❌ Unexpected error: {e}", file=sys.stderr)
                    return 1

        return asyncio.run(run_with_session())

    print(f"❌ Unknown command: {args.command}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
