"""
utils.py - Constants, enumerations and helpers for the wall simulator

This module holds the contract constants shared by the board, the rules
engine and the front-ends, the wall type enumerations, the row-to-type
mapping and the ASCII renderer.
"""

from enum import Enum
from typing import List, Sequence

# Board contract
LANES = 6
ROTATIONS = 6
MAX_WALLS = 6          # per-lane height cap across carry-over + own walls
MAX_PLACED_WALLS = 11  # own walls per rotation
MAX_BREAKS = 7         # broken walls per rotation, own + carry-over


class WallKind(Enum):
    """Structural wall type; X marks a broken wall."""
    N = "N"
    H = "H"
    M = "M"
    X = "X"

    @property
    def code(self) -> int:
        """Integer code used in array state views (0 is reserved for empty)."""
        return KIND_CODES[self]

    def __str__(self):
        return self.value


class Provenance(Enum):
    """Where a wall came from."""
    PLACED = "placed"
    CARRY = "carry"

    def __str__(self):
        return self.value


KIND_CODES = {
    WallKind.N: 1,
    WallKind.H: 2,
    WallKind.M: 3,
    WallKind.X: 4,
}

WALL_COLORS = {
    WallKind.N: '#20298C',
    WallKind.H: '#190848',
    WallKind.M: '#4A4897',
    WallKind.X: '#FF4D4D',
}

# Row 0 is the bottom of a lane
ROW_TYPES = (WallKind.N, WallKind.H, WallKind.M, WallKind.M, WallKind.H, WallKind.M)


def row_type(row: int) -> WallKind:
    """
    Map a row number in the merged lane stack to its structural type.

    Args:
        row: 0-based row counted from the bottom of the lane

    Returns:
        The wall type for that row (M above the known rows)
    """
    if row < 0:
        raise ValueError(f"Row must be non-negative, got {row}")
    if row < len(ROW_TYPES):
        return ROW_TYPES[row]
    return WallKind.M


def display_type(kind: WallKind) -> str:
    """Label shown for a wall: its type letter, or 'Break' when broken."""
    return "Break" if kind == WallKind.X else kind.value


def is_valid_coordinate(rotation: int, lane: int) -> bool:
    """Check that a (rotation, lane) pair addresses a real lane."""
    return 0 <= rotation < ROTATIONS and 0 <= lane < LANES


def render_lanes_ascii(lanes: Sequence[Sequence], title: str = "") -> str:
    """
    Render merged lane stacks as ASCII art, top row first.

    Carried-over walls are shown in lower case so they stand apart from
    walls placed in the rotation itself.

    Args:
        lanes: One bottom-to-top sequence of walls per lane
        title: Optional heading line

    Returns:
        ASCII representation of the lanes
    """
    cell_width = 5
    result: List[str] = []
    if title:
        result.append(title)
    border = "+" + "+".join("-" * cell_width for _ in lanes) + "+"
    result.append(border)
    for row in range(MAX_WALLS - 1, -1, -1):
        cells = []
        for lane in lanes:
            label = ""
            if row < len(lane):
                wall = lane[row]
                label = display_type(wall.kind)
                if wall.source == Provenance.CARRY:
                    label = label.lower()
            cells.append(label.center(cell_width))
        result.append("|" + "|".join(cells) + f"| row {row + 1}")
    result.append(border)
    result.append(" " + " ".join(f"L{i + 1}".center(cell_width) for i in range(len(lanes))))
    return "\n".join(result)
