"""Tests for CLI tool.

This module tests the CLI command handlers with real database operations
using the db_session fixture backed by in-memory SQLite.
"""

import argparse

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from subway.cli import (
    build_parser,
    cmd_add_section,
    cmd_create_line,
    cmd_create_station,
    cmd_list_stations,
    cmd_remove_station,
    cmd_show_line,
    main,
)
from subway.models.subway import Line, Station

from tests.helpers.network_helpers import TestNetwork, as_named_edges, get_line_sections


@pytest.mark.asyncio
async def test_cmd_create_station_success(db_session: AsyncSession, capsys: pytest.CaptureFixture[str]):
    """Test create-station command creates the station in the database."""
    args = argparse.Namespace(name="Gangnam")

    exit_code = await cmd_create_station(args, db_session)

    assert exit_code == 0
    captured = capsys.readouterr()
    assert "Created station" in captured.out
    assert "Gangnam" in captured.out

    result = await db_session.execute(select(Station))
    assert [station.name for station in result.scalars().all()] == ["Gangnam"]


@pytest.mark.asyncio
async def test_cmd_create_station_duplicate(
    db_session: AsyncSession, network: TestNetwork, capsys: pytest.CaptureFixture[str]
):
    """Test create-station command fails for a taken name."""
    exit_code = await cmd_create_station(argparse.Namespace(name="A"), db_session)

    assert exit_code == 1
    captured = capsys.readouterr()
    assert "already exists" in captured.err


@pytest.mark.asyncio
async def test_cmd_list_stations(db_session: AsyncSession, network: TestNetwork, capsys: pytest.CaptureFixture[str]):
    """Test list-stations prints one row per station."""
    exit_code = await cmd_list_stations(argparse.Namespace(), db_session)

    assert exit_code == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 6  # header + 5 stations
    assert lines[1].split() == [str(network.station_id("A")), "A"]


@pytest.mark.asyncio
async def test_cmd_list_stations_empty(db_session: AsyncSession, capsys: pytest.CaptureFixture[str]):
    """Test list-stations with no stations."""
    exit_code = await cmd_list_stations(argparse.Namespace(), db_session)

    assert exit_code == 0
    assert "No stations found" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_cmd_create_line_success(db_session: AsyncSession, capsys: pytest.CaptureFixture[str]):
    """Test create-line command creates a line without sections."""
    exit_code = await cmd_create_line(argparse.Namespace(name="Blue", color="blue"), db_session)

    assert exit_code == 0
    assert "Created line" in capsys.readouterr().out

    result = await db_session.execute(select(Line).where(Line.name == "Blue"))
    line = result.scalar_one()
    assert line.color == "blue"


@pytest.mark.asyncio
async def test_cmd_add_section_split(
    db_session: AsyncSession, network: TestNetwork, capsys: pytest.CaptureFixture[str]
):
    """Test add-section splits an existing section."""
    args = argparse.Namespace(
        line_id=network.line.id,
        up_station_id=network.station_id("A"),
        down_station_id=network.station_id("D"),
        distance=2,
    )

    exit_code = await cmd_add_section(args, db_session)

    assert exit_code == 0
    assert "Added section" in capsys.readouterr().out
    rows = await get_line_sections(db_session, network.line.id)
    assert as_named_edges(rows, network) == {("A", "D", 2), ("D", "B", 3), ("B", "C", 7)}


@pytest.mark.asyncio
async def test_cmd_add_section_rejected(
    db_session: AsyncSession, network: TestNetwork, capsys: pytest.CaptureFixture[str]
):
    """Test add-section reports a section that cannot be placed."""
    args = argparse.Namespace(
        line_id=network.line.id,
        up_station_id=network.station_id("D"),
        down_station_id=network.station_id("E"),
        distance=2,
    )

    exit_code = await cmd_add_section(args, db_session)

    assert exit_code == 1
    assert "Error" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_cmd_add_section_invalid_distance(
    db_session: AsyncSession, network: TestNetwork, capsys: pytest.CaptureFixture[str]
):
    """Test add-section validates the request before touching the database."""
    args = argparse.Namespace(
        line_id=network.line.id,
        up_station_id=network.station_id("C"),
        down_station_id=network.station_id("D"),
        distance=0,
    )

    exit_code = await cmd_add_section(args, db_session)

    assert exit_code == 1
    assert "Error" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_cmd_remove_station(db_session: AsyncSession, network: TestNetwork, capsys: pytest.CaptureFixture[str]):
    """Test remove-station merges the neighbouring sections."""
    args = argparse.Namespace(line_id=network.line.id, station_id=network.station_id("B"))

    exit_code = await cmd_remove_station(args, db_session)

    assert exit_code == 0
    assert "Removed station" in capsys.readouterr().out
    rows = await get_line_sections(db_session, network.line.id)
    assert as_named_edges(rows, network) == {("A", "C", 12)}


@pytest.mark.asyncio
async def test_cmd_remove_station_not_on_line(
    db_session: AsyncSession, network: TestNetwork, capsys: pytest.CaptureFixture[str]
):
    """Test remove-station fails for a station not on the line."""
    args = argparse.Namespace(line_id=network.line.id, station_id=network.station_id("E"))

    exit_code = await cmd_remove_station(args, db_session)

    assert exit_code == 1
    assert "not on this line" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_cmd_show_line(db_session: AsyncSession, network: TestNetwork, capsys: pytest.CaptureFixture[str]):
    """Test show-line prints the stations in path order."""
    exit_code = await cmd_show_line(argparse.Namespace(line_id=network.line.id), db_session)

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Green" in out
    assert "A -> B -> C" in out


@pytest.mark.asyncio
async def test_cmd_show_line_not_found(db_session: AsyncSession, capsys: pytest.CaptureFixture[str]):
    """Test show-line fails for an unknown line."""
    exit_code = await cmd_show_line(argparse.Namespace(line_id=999), db_session)

    assert exit_code == 1
    assert "Line 999 not found" in capsys.readouterr().err


def test_build_parser_add_section_arguments():
    """Test the add-section subcommand parses integer arguments."""
    args = build_parser().parse_args(["add-section", "1", "2", "3", "10"])

    assert args.command == "add-section"
    assert (args.line_id, args.up_station_id, args.down_station_id, args.distance) == (1, 2, 3, 10)


def test_main_without_command_prints_help(capsys: pytest.CaptureFixture[str]):
    """Test main returns 1 and prints help when no command is given."""
    exit_code = main([])

    assert exit_code == 1
    assert "usage" in capsys.readouterr().out.lower()
