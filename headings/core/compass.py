"""
Compass Reference Data.

Static lookup tables for the 36-point rose:
- WEDGE_DEFINITIONS: the 8 tap-input octants and their member headings
- HEADING_PACKETS: heading -> reciprocal, direction, wedge
- MASTER_SEQUENCE: fixed unlock/priority order
- GRID_PAIRS: the 18 reciprocal pairs for progress grids

Everything here is built once at import time and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType


class CompassDirection(str, Enum):
    """Spoken compass direction for a wedge."""

    NORTH = "North"
    NORTH_EAST = "North East"
    EAST = "East"
    SOUTH_EAST = "South East"
    SOUTH = "South"
    SOUTH_WEST = "South West"
    WEST = "West"
    NORTH_WEST = "North West"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class WedgeDefinition:
    """A 45-degree compass octant."""

    id: int
    direction: CompassDirection
    headings: tuple[str, ...]
    angle: int


@dataclass(frozen=True)
class HeadingPacket:
    """Precomputed facts about one heading."""

    id: str
    reciprocal: str
    direction: CompassDirection
    wedge_id: int


WEDGE_DEFINITIONS: tuple[WedgeDefinition, ...] = (
    WedgeDefinition(0, CompassDirection.NORTH, ("34", "35", "36", "01", "02"), 0),
    WedgeDefinition(1, CompassDirection.NORTH_EAST, ("03", "04", "05", "06"), 45),
    WedgeDefinition(2, CompassDirection.EAST, ("07", "08", "09", "10", "11"), 90),
    WedgeDefinition(3, CompassDirection.SOUTH_EAST, ("12", "13", "14", "15"), 135),
    WedgeDefinition(4, CompassDirection.SOUTH, ("16", "17", "18", "19", "20"), 180),
    WedgeDefinition(5, CompassDirection.SOUTH_WEST, ("21", "22", "23", "24"), 225),
    WedgeDefinition(6, CompassDirection.WEST, ("25", "26", "27", "28", "29"), 270),
    WedgeDefinition(7, CompassDirection.NORTH_WEST, ("30", "31", "32", "33"), 315),
)

# Sentinel wedge id for "no answer before the timer ran out"
TIMEOUT_WEDGE = -1

ALL_HEADINGS: tuple[str, ...] = tuple(f"{n:02d}" for n in range(1, 37))


def _pair_of(n: int) -> int:
    return n + 18 if n <= 18 else n - 18


def _build_packets() -> MappingProxyType:
    wedge_by_heading = {h: w for w in WEDGE_DEFINITIONS for h in w.headings}
    packets = {}
    for heading in ALL_HEADINGS:
        wedge = wedge_by_heading[heading]
        packets[heading] = HeadingPacket(
            id=heading,
            reciprocal=f"{_pair_of(int(heading)):02d}",
            direction=wedge.direction,
            wedge_id=wedge.id,
        )
    return MappingProxyType(packets)


HEADING_PACKETS = _build_packets()

# Cardinals, intercardinals, then fill outward so spatial anchors come first.
MASTER_SEQUENCE: tuple[str, ...] = (
    # Tier 1: cardinals
    "36", "18", "09", "27",
    # Tier 2: intercardinals
    "05", "23", "14", "32",
    # Tier 3
    "01", "19", "10", "28", "04", "22", "13", "31",
    # Tier 4
    "02", "20", "08", "26", "06", "24", "15", "33",
    # Tier 5
    "35", "17", "07", "25", "03", "21", "12", "30", "34", "16", "11", "29",
)

GRID_PAIRS: tuple[tuple[str, str], ...] = tuple(
    (h, HEADING_PACKETS[h].reciprocal) for h in ALL_HEADINGS[:18]
)


def get_wedge(wedge_id: int) -> WedgeDefinition:
    """Look up a wedge by its id (0-7)."""
    return WEDGE_DEFINITIONS[wedge_id]


def get_wedge_for_heading(heading: str) -> WedgeDefinition | None:
    """Find the wedge containing a 2-digit heading, or None."""
    packet = HEADING_PACKETS.get(heading[:2])
    if packet is None:
        return None
    return WEDGE_DEFINITIONS[packet.wedge_id]
