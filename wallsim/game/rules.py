"""
rules.py - Rules engine and Gymnasium environment for the wall simulator

This module provides:
1. WallSimulator, the state machine that places, breaks, unbreaks and removes
   walls across the fixed sequence of rotations and carries surviving walls
   forward when a rotation fills up with breaks
2. WallEnv, a gymnasium-compatible environment that drives the simulator
   with discrete intents
"""

from enum import IntEnum
from typing import Any, Dict, List, Optional, Tuple, Union

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from wallsim.debug import debug
from wallsim.game.board import Board, Lane, Wall, merge, split
from wallsim.utils import (LANES, MAX_BREAKS, MAX_PLACED_WALLS, MAX_WALLS,
                           ROTATIONS, Provenance, WallKind,
                           is_valid_coordinate, render_lanes_ascii, row_type)


class WallSimulator:
    """
    Rules engine for the lane-based wall board.

    Owns one Board of own placements and one carry-over Board per rotation,
    plus the mark-mode and wipe flags. Every operation is a synchronous state
    transition that either applies fully or is absorbed as a no-op; no
    operation raises for a rule violation. Operations return True when they
    changed state.
    """

    def __init__(self, rollback_carry_on_unbreak: bool = False):
        """
        Initialize an empty simulator.

        Args:
            rollback_carry_on_unbreak: When True, reversing a break that left
                a rotation below the break limit clears the carry-over that
                rotation previously forwarded to the next one. When False the
                forwarded carry-over is left in place.
        """
        debug.debug("Initializing WallSimulator", "engine")
        self.rollback_carry_on_unbreak = rollback_carry_on_unbreak
        self.reset()

    def reset(self) -> None:
        """Empty every board and carry-over store and clear both flags."""
        debug.debug("Resetting simulator", "engine")
        self.boards: List[Board] = [Board() for _ in range(ROTATIONS)]
        self.carry_over: List[Board] = [Board() for _ in range(ROTATIONS)]
        self.mark_mode = False
        self.wipe = False
        # carried_forward[r] is True while carry_over[r] holds a carry-forward from r - 1
        self.carried_forward: List[bool] = [False] * ROTATIONS

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def merged_lane(self, rotation: int, lane: int) -> Lane:
        """The lane's carried-over walls followed by its own walls, bottom first."""
        return merge(self.carry_over[rotation][lane], self.boards[rotation][lane])

    def merged_lanes(self, rotation: int) -> List[Lane]:
        return [self.merged_lane(rotation, lane) for lane in range(LANES)]

    def lane_height(self, rotation: int, lane: int) -> int:
        return self.carry_over[rotation].height(lane) + self.boards[rotation].height(lane)

    def wall_count(self, rotation: int) -> int:
        """Walls placed in the rotation itself."""
        return self.boards[rotation].wall_count()

    def total_walls(self, rotation: int) -> int:
        """Own walls plus carried-over walls."""
        return self.boards[rotation].wall_count() + self.carry_over[rotation].wall_count()

    def break_count(self, rotation: int) -> int:
        """Broken walls among own and carried-over walls."""
        return self.boards[rotation].break_count() + self.carry_over[rotation].break_count()

    def get_state(self) -> np.ndarray:
        """
        Get the merged lanes of every rotation as an array of kind codes.

        Returns:
            ROTATIONS x LANES x MAX_WALLS int8 array; 0 is empty
        """
        state = np.zeros((ROTATIONS, LANES, MAX_WALLS), dtype=np.int8)
        for rotation in range(ROTATIONS):
            for lane in range(LANES):
                for row, wall in enumerate(self.merged_lane(rotation, lane)[:MAX_WALLS]):
                    state[rotation, lane, row] = wall.kind.code
        return state

    def snapshot(self) -> Dict[str, Any]:
        """Plain-data view of the whole simulator for renderers."""
        return {
            'mark_mode': self.mark_mode,
            'wipe': self.wipe,
            'rotations': [
                {
                    'walls': self.total_walls(rotation),
                    'breaks': self.break_count(rotation),
                    'lanes': [[wall.to_dict() for wall in lane]
                              for lane in self.merged_lanes(rotation)],
                }
                for rotation in range(ROTATIONS)
            ],
        }

    def render(self, rotation: int) -> str:
        title = (f"Rotation {rotation + 1}  walls {self.total_walls(rotation)}"
                 f"  breaks {self.break_count(rotation)}/{MAX_BREAKS}")
        return render_lanes_ascii(self.merged_lanes(rotation), title)

    def render_all(self) -> str:
        header = [f"Mark mode: {'ON' if self.mark_mode else 'OFF'}"]
        if self.wipe:
            header.append("Wipe! A lane has 6 or more walls.")
        return "\n\n".join(["\n".join(header)] + [self.render(r) for r in range(ROTATIONS)])

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------

    def toggle_mark_mode(self) -> bool:
        """Flip mark mode and return the new value."""
        self.mark_mode = not self.mark_mode
        debug.debug(f"Mark mode {'ON' if self.mark_mode else 'OFF'}", "engine")
        return self.mark_mode

    def primary(self, rotation: int, lane: int) -> bool:
        """Primary gesture: break in mark mode, place otherwise."""
        if self.mark_mode:
            return self.mark_or_break(rotation, lane)
        return self.place(rotation, lane)

    def secondary(self, rotation: int, lane: int) -> bool:
        """Secondary gesture."""
        return self.remove(rotation, lane)

    def place(self, rotation: int, lane: int) -> bool:
        """
        Place a new wall on top of a lane's own stack.

        Absorbed as a no-op in mark mode, when the rotation already has its
        maximum of own walls or breaks, or when the lane is full. A full lane
        additionally raises the wipe flag.

        Returns:
            True if a wall was placed
        """
        if self.mark_mode:
            debug.debug("Place ignored: mark mode is on", "engine")
            return False
        if not self._check_coordinate(rotation, lane):
            return False

        board = self.boards[rotation]
        if board.wall_count() >= MAX_PLACED_WALLS:
            debug.debug(f"Place ignored: rotation {rotation} already has "
                        f"{MAX_PLACED_WALLS} walls", "engine")
            return False
        if self.break_count(rotation) >= MAX_BREAKS:
            debug.debug(f"Place ignored: rotation {rotation} already has "
                        f"{MAX_BREAKS} breaks", "engine")
            return False

        row = self.lane_height(rotation, lane)
        if row >= MAX_WALLS:
            self.wipe = True
            debug.warning(f"Wipe: lane {lane} of rotation {rotation} is full", "engine")
            return False

        wall = Wall(row_type(row), Provenance.PLACED)
        board.push(lane, wall)
        debug.debug(f"Placed {wall.kind} at rotation {rotation}, lane {lane}, row {row}", "engine")
        return True

    def mark_or_break(self, rotation: int, lane: int) -> bool:
        """
        Break the topmost unbroken wall of the merged lane stack.

        When this break brings the rotation to exactly the break limit and
        the rotation holds enough walls, the unbroken survivors are carried
        forward to the next rotation.

        Returns:
            True if a wall was broken
        """
        if not self._check_coordinate(rotation, lane):
            return False

        breaks_before = self.break_count(rotation)
        if breaks_before >= MAX_BREAKS:
            debug.debug(f"Break ignored: rotation {rotation} already has {MAX_BREAKS} breaks", "engine")
            return False

        stack = self.merged_lane(rotation, lane)
        for row in range(len(stack) - 1, -1, -1):
            if not stack[row].is_broken:
                stack[row] = stack[row].broken()
                break
        else:
            debug.debug(f"Break ignored: no unbroken wall in rotation {rotation}, lane {lane}", "engine")
            return False

        self._write_back(rotation, lane, stack)
        debug.debug(f"Broke wall at rotation {rotation}, lane {lane}, row {row}", "engine")

        if (breaks_before + 1 == MAX_BREAKS
                and self.total_walls(rotation) >= MAX_PLACED_WALLS
                and rotation + 1 < ROTATIONS):
            self._carry_forward(rotation)
        return True

    def unbreak(self, rotation: int, lane: int) -> bool:
        """
        Restore the lowest broken wall of the merged lane stack.

        The restored wall takes the type of the row it currently sits in.

        Returns:
            True if a wall was restored
        """
        if not self._check_coordinate(rotation, lane):
            return False

        stack = self.merged_lane(rotation, lane)
        for row, wall in enumerate(stack):
            if wall.is_broken:
                stack[row] = wall.restored(row)
                break
        else:
            debug.debug(f"Unbreak ignored: no broken wall in rotation {rotation}, lane {lane}", "engine")
            return False

        self._write_back(rotation, lane, stack)
        debug.debug(f"Restored {stack[row].kind} at rotation {rotation}, lane {lane}, row {row}", "engine")

        if self.rollback_carry_on_unbreak:
            self._rollback_carry(rotation)
        return True

    def remove(self, rotation: int, lane: int) -> bool:
        """
        Remove intent: unbreak in mark mode, otherwise pop the top own wall.

        Carried-over walls are never popped.

        Returns:
            True if state changed
        """
        if self.mark_mode:
            return self.unbreak(rotation, lane)
        if not self._check_coordinate(rotation, lane):
            return False

        wall = self.boards[rotation].pop(lane)
        if wall is None:
            debug.debug(f"Remove ignored: no own wall in rotation {rotation}, lane {lane}", "engine")
            return False
        debug.debug(f"Removed {wall.kind} from rotation {rotation}, lane {lane}", "engine")
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_coordinate(self, rotation: int, lane: int) -> bool:
        if is_valid_coordinate(rotation, lane):
            return True
        debug.debug(f"Ignoring intent at out-of-range rotation {rotation}, lane {lane}", "engine")
        return False

    def _write_back(self, rotation: int, lane: int, stack: Lane) -> None:
        carry, own = split(stack, self.carry_over[rotation].height(lane))
        self.carry_over[rotation][lane] = carry
        self.boards[rotation][lane] = own

    def _carry_forward(self, rotation: int) -> None:
        """
        Replace the next rotation's carry-over with this rotation's survivors.

        Survivors are read after the triggering break, so a carried wall
        broken by that break is not forwarded. Each lane is truncated to the
        room left above the next rotation's own walls rather than to a flat
        MAX_WALLS, so a lane can never hold more than MAX_WALLS walls; with
        no own walls there yet the two are the same.
        """
        target = rotation + 1
        carry_survivors = self.carry_over[rotation].survivors()
        own_survivors = self.boards[rotation].survivors()
        next_board = self.boards[target]

        forwarded = Board()
        for lane in range(LANES):
            walls = [wall.as_carry() for wall in carry_survivors[lane] + own_survivors[lane]]
            room = max(MAX_WALLS - next_board.height(lane), 0)
            if len(walls) > room:
                debug.warning(f"Carry-forward into rotation {target}, lane {lane}: "
                              f"{len(walls) - room} wall(s) dropped, lane already holds "
                              f"{next_board.height(lane)} own wall(s)", "engine")
            forwarded[lane] = walls[:room]

        self.carry_over[target] = forwarded
        self.carried_forward[target] = True
        debug.info(f"Carried {forwarded.wall_count()} wall(s) from rotation {rotation} "
                   f"into rotation {target}", "engine")

    def _rollback_carry(self, rotation: int) -> None:
        target = rotation + 1
        if target >= ROTATIONS or not self.carried_forward[target]:
            return
        if self.break_count(rotation) >= MAX_BREAKS:
            return
        self.carry_over[target] = Board()
        self.carried_forward[target] = False
        debug.info(f"Cleared carry-over of rotation {target} after unbreak in rotation {rotation}", "engine")


class Intent(IntEnum):
    """Discrete intents accepted by WallEnv."""
    PLACE = 0
    BREAK = 1
    UNBREAK = 2
    REMOVE = 3


class WallEnv(gym.Env):
    """
    Wall simulator environment following the Gymnasium interface.

    An action is ``(intent, rotation, lane)``. The environment switches mark
    mode as each intent requires before forwarding it to the simulator, so an
    agent never has to manage the mode flag itself. The episode terminates
    once the wipe flag is raised.
    """

    metadata = {'render_modes': ['ascii', 'human'], 'render_fps': 4}

    def __init__(self, render_mode: Optional[str] = None,
                 rollback_carry_on_unbreak: bool = False):
        debug.debug("Initializing WallEnv", "env")
        self.action_space = spaces.MultiDiscrete([len(Intent), ROTATIONS, LANES])
        self.observation_space = spaces.Box(
            low=0, high=len(WallKind), shape=(ROTATIONS, LANES, MAX_WALLS), dtype=np.int8
        )
        self.simulator = WallSimulator(rollback_carry_on_unbreak=rollback_carry_on_unbreak)
        self.render_mode = render_mode

        self.reward_wipe = -1.0
        self.reward_noop = -0.1
        self.reward_step = 0.0

    def reset(self, seed: Optional[int] = None, options: Optional[Dict] = None) -> Tuple[np.ndarray, Dict]:
        debug.debug("Resetting environment", "env")
        super().reset(seed=seed)
        self.simulator.reset()
        if self.render_mode == "human":
            self.render()
        return self.simulator.get_state(), self._get_info()

    def step(self, action) -> Tuple[np.ndarray, float, bool, bool, Dict]:
        """
        Apply one intent.

        Args:
            action: Sequence of (intent, rotation, lane)

        Returns:
            Tuple of (observation, reward, terminated, truncated, info)
        """
        intent, rotation, lane = (int(a) for a in action)
        intent = Intent(intent)
        debug.debug(f"Environment step {intent.name} at rotation {rotation}, lane {lane}", "env")

        sim = self.simulator
        was_wiped = sim.wipe
        sim.mark_mode = intent in (Intent.BREAK, Intent.UNBREAK)
        if intent == Intent.PLACE:
            changed = sim.place(rotation, lane)
        elif intent == Intent.BREAK:
            changed = sim.mark_or_break(rotation, lane)
        elif intent == Intent.UNBREAK:
            changed = sim.unbreak(rotation, lane)
        else:
            changed = sim.remove(rotation, lane)

        if sim.wipe and not was_wiped:
            reward = self.reward_wipe
        elif not changed:
            reward = self.reward_noop
        else:
            reward = self.reward_step

        info = self._get_info()
        info['changed'] = changed
        if self.render_mode == "human":
            self.render()
        return sim.get_state(), reward, sim.wipe, False, info

    def render(self) -> Optional[Union[str, np.ndarray]]:
        if self.render_mode is None:
            return None
        frame = self.simulator.render_all()
        if self.render_mode == "human":
            print(frame)
            return None
        return frame

    def _get_info(self) -> Dict:
        sim = self.simulator
        return {
            'walls': [sim.total_walls(r) for r in range(ROTATIONS)],
            'breaks': [sim.break_count(r) for r in range(ROTATIONS)],
            'mark_mode': sim.mark_mode,
            'wipe': sim.wipe,
        }

    def close(self):
        pass
