"""
board.py - Walls, lane stacks and the per-rotation board

This module implements the Wall value type, the Board class holding the six
lane stacks of one rotation, and the helpers that join a rotation's
carried-over walls with its own walls into one merged lane stack and split
that stack back apart.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from wallsim.debug import debug
from wallsim.utils import (LANES, MAX_WALLS, WALL_COLORS, Provenance, WallKind,
                           display_type, render_lanes_ascii, row_type)


@dataclass(frozen=True)
class Wall:
    """A wall marker in a lane: its type and where it came from."""
    kind: WallKind
    source: Provenance = Provenance.PLACED

    @property
    def is_broken(self) -> bool:
        return self.kind == WallKind.X

    def broken(self) -> 'Wall':
        """Return this wall marked broken; provenance is kept."""
        return Wall(WallKind.X, self.source)

    def restored(self, row: int) -> 'Wall':
        """Return this wall unbroken with the type implied by ``row``."""
        return Wall(row_type(row), self.source)

    def as_carry(self) -> 'Wall':
        return Wall(self.kind, Provenance.CARRY)

    def to_dict(self) -> Dict[str, str]:
        return {
            'type': self.kind.value,
            'display': display_type(self.kind),
            'color': WALL_COLORS[self.kind],
            'source': self.source.value,
        }


Lane = List[Wall]


def merge(carry: Sequence[Wall], own: Sequence[Wall]) -> Lane:
    """Build the merged lane stack: carried-over walls below own walls."""
    return list(carry) + list(own)


def split(stack: Sequence[Wall], carry_size: int) -> Tuple[Lane, Lane]:
    """
    Split a merged lane stack back into its carry-over prefix and own suffix.

    Args:
        stack: Merged bottom-to-top lane stack
        carry_size: Number of walls in the carry-over prefix

    Returns:
        Tuple of (carry-over walls, own walls)
    """
    if not 0 <= carry_size <= len(stack):
        raise ValueError(f"Carry size {carry_size} out of range for a stack of {len(stack)}")
    return list(stack[:carry_size]), list(stack[carry_size:])


class Board:
    """
    The lane stacks of a single rotation.

    Each lane is a bottom-to-top list of walls. The same class is used for a
    rotation's own placements and for its carry-over store.
    """

    def __init__(self, lanes: Optional[Sequence[Sequence[Wall]]] = None):
        self.reset()
        if lanes is not None:
            if len(lanes) != LANES:
                raise ValueError(f"A board has exactly {LANES} lanes, got {len(lanes)}")
            self.lanes = [list(lane) for lane in lanes]

    def reset(self):
        """Empty every lane."""
        self.lanes: List[Lane] = [[] for _ in range(LANES)]

    def copy(self) -> 'Board':
        # Walls are immutable, so copying the lists is enough
        return Board(self.lanes)

    def __getitem__(self, lane: int) -> Lane:
        return self.lanes[lane]

    def __setitem__(self, lane: int, walls: Sequence[Wall]):
        self.lanes[lane] = list(walls)

    def __len__(self) -> int:
        return LANES

    def __eq__(self, other) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.lanes == other.lanes

    def height(self, lane: int) -> int:
        return len(self.lanes[lane])

    def wall_count(self) -> int:
        """Number of walls across all lanes, broken or not."""
        return sum(len(lane) for lane in self.lanes)

    def break_count(self) -> int:
        """Number of broken walls across all lanes."""
        return sum(1 for lane in self.lanes for wall in lane if wall.is_broken)

    def is_empty(self) -> bool:
        return self.wall_count() == 0

    def push(self, lane: int, wall: Wall):
        debug.trace(f"Pushing {wall.kind} ({wall.source}) onto lane {lane}", "board")
        self.lanes[lane].append(wall)

    def pop(self, lane: int) -> Optional[Wall]:
        """Remove and return the top wall of a lane, or None if it is empty."""
        if not self.lanes[lane]:
            return None
        wall = self.lanes[lane].pop()
        debug.trace(f"Popped {wall.kind} ({wall.source}) from lane {lane}", "board")
        return wall

    def survivors(self) -> List[Lane]:
        """Per lane, the walls that are not broken, bottom to top."""
        return [[wall for wall in lane if not wall.is_broken] for lane in self.lanes]

    def get_state(self) -> np.ndarray:
        """
        Get the board as an array of kind codes.

        Returns:
            LANES x MAX_WALLS int array; 0 is empty, otherwise WallKind.code
        """
        state = np.zeros((LANES, MAX_WALLS), dtype=np.int8)
        for lane_index, lane in enumerate(self.lanes):
            for row, wall in enumerate(lane[:MAX_WALLS]):
                state[lane_index, row] = wall.kind.code
        return state

    def render(self, title: str = "") -> str:
        return render_lanes_ascii(self.lanes, title)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"Board(walls={self.wall_count()}, breaks={self.break_count()})"
