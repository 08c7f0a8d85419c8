import unittest

from wallsim.game.board import Board, Wall
from wallsim.game.rules import WallSimulator
from wallsim.utils import LANES, MAX_WALLS, ROTATIONS, Provenance, WallKind

N, H, M, X = WallKind.N, WallKind.H, WallKind.M, WallKind.X
PLACED, CARRY = Provenance.PLACED, Provenance.CARRY


def fill(sim, rotation, counts):
    """Place walls lane by lane, e.g. counts={0: 6, 1: 5}."""
    sim.mark_mode = False
    for lane, count in counts.items():
        for _ in range(count):
            assert sim.place(rotation, lane)


def breaks(sim, rotation, counts):
    sim.mark_mode = True
    for lane, count in counts.items():
        for _ in range(count):
            assert sim.mark_or_break(rotation, lane)


class TestCarryForward(unittest.TestCase):
    def setUp(self):
        self.sim = WallSimulator()
        fill(self.sim, 0, {0: 6, 1: 5})

    def _trigger(self):
        breaks(self.sim, 0, {0: 4, 1: 3})

    def test_given_eleven_walls_when_seventh_break_then_survivors_carried(self):
        breaks(self.sim, 0, {0: 4, 1: 2})
        self.assertEqual(self.sim.break_count(0), 6)
        self.assertTrue(self.sim.carry_over[1].is_empty())

        self.assertTrue(self.sim.mark_or_break(0, 1))
        carry = self.sim.carry_over[1]
        self.assertEqual(carry[0], [Wall(N, CARRY), Wall(H, CARRY)])
        self.assertEqual(carry[1], [Wall(N, CARRY), Wall(H, CARRY)])
        for lane in range(2, LANES):
            self.assertEqual(carry[lane], [])
        self.assertEqual(carry.wall_count(), 4)
        self.assertTrue(self.sim.carried_forward[1])

    def test_given_carry_forward_when_done_then_source_rotation_unchanged(self):
        self._trigger()
        self.assertEqual(self.sim.boards[0][0], [Wall(N), Wall(H), Wall(X), Wall(X), Wall(X), Wall(X)])
        self.assertTrue(self.sim.boards[1].is_empty())

    def test_given_seventh_break_on_carried_wall_when_triggered_then_that_wall_not_forwarded(self):
        sim = WallSimulator()
        sim.carry_over[0][0] = [Wall(N, CARRY)]
        fill(sim, 0, {0: 5, 1: 5})
        self.assertEqual(sim.total_walls(0), 11)
        breaks(sim, 0, {0: 5, 1: 1})
        self.assertEqual(sim.break_count(0), 6)

        # Lane 0 has only the carried N left unbroken
        self.assertTrue(sim.mark_or_break(0, 0))
        self.assertEqual(sim.carry_over[0][0], [Wall(X, CARRY)])
        carry = sim.carry_over[1]
        self.assertEqual(carry[0], [])
        self.assertEqual(carry[1], [Wall(N, CARRY), Wall(H, CARRY), Wall(M, CARRY), Wall(M, CARRY)])
        self.assertEqual(carry.wall_count(), 4)

    def test_given_fewer_than_eleven_walls_when_seventh_break_then_no_carry(self):
        sim = WallSimulator()
        fill(sim, 0, {0: 6, 1: 4})
        breaks(sim, 0, {0: 4, 1: 3})
        self.assertEqual(sim.break_count(0), 7)
        self.assertTrue(sim.carry_over[1].is_empty())
        self.assertFalse(sim.carried_forward[1])

    def test_given_seven_breaks_already_when_breaking_again_then_no_retrigger(self):
        self._trigger()
        self.sim.carry_over[1] = Board()
        self.assertFalse(self.sim.mark_or_break(0, 0))
        self.assertTrue(self.sim.carry_over[1].is_empty())

    def test_given_final_rotation_when_seventh_break_then_nothing_forwarded(self):
        sim = WallSimulator()
        last = ROTATIONS - 1
        fill(sim, last, {0: 6, 1: 5})
        breaks(sim, last, {0: 4, 1: 3})
        self.assertEqual(sim.break_count(last), 7)
        for rotation in range(ROTATIONS):
            self.assertTrue(sim.carry_over[rotation].is_empty())

    def test_given_existing_carry_over_when_triggered_then_fully_replaced(self):
        self.sim.carry_over[1][5] = [Wall(M, CARRY)]
        self._trigger()
        self.assertEqual(self.sim.carry_over[1][5], [])
        self.assertEqual(self.sim.carry_over[1].wall_count(), 4)

    def test_given_own_walls_in_next_rotation_when_triggered_then_lane_capped(self):
        fill(self.sim, 1, {0: 5})
        self._trigger()
        self.assertEqual(self.sim.carry_over[1][0], [Wall(N, CARRY)])
        self.assertEqual(self.sim.lane_height(1, 0), MAX_WALLS)
        self.assertEqual(self.sim.carry_over[1][1], [Wall(N, CARRY), Wall(H, CARRY)])

    def test_given_carried_walls_when_next_rotation_triggers_then_chain_uses_current_breaks(self):
        self._trigger()
        # Rotation 2: 2 + 2 carried walls, 7 own walls on top
        fill(self.sim, 1, {0: 4, 1: 3})
        self.assertEqual(self.sim.total_walls(1), 11)
        self.assertEqual(self.sim.wall_count(1), 7)
        # Lane 0 loses its 4 own walls and the carried H
        breaks(self.sim, 1, {0: 5, 1: 2})
        self.assertEqual(self.sim.break_count(1), 7)
        carry = self.sim.carry_over[2]
        self.assertEqual(carry[0], [Wall(N, CARRY)])
        self.assertEqual(carry[1], [Wall(N, CARRY), Wall(H, CARRY), Wall(M, CARRY)])


class TestCarryForwardReversal(unittest.TestCase):
    def _setup(self, rollback):
        sim = WallSimulator(rollback_carry_on_unbreak=rollback)
        fill(sim, 0, {0: 6, 1: 5})
        breaks(sim, 0, {0: 4, 1: 3})
        return sim

    def test_given_default_when_unbreaking_trigger_rotation_then_carry_kept(self):
        sim = self._setup(rollback=False)
        self.assertTrue(sim.unbreak(0, 1))
        self.assertEqual(sim.break_count(0), 6)
        self.assertEqual(sim.carry_over[1].wall_count(), 4)
        self.assertTrue(sim.carried_forward[1])

    def test_given_unbreak_then_different_break_when_back_at_seven_then_carry_recomputed(self):
        sim = self._setup(rollback=False)
        # Lane 1 row 2 comes back as M, then lane 0's H is broken instead
        sim.unbreak(0, 1)
        self.assertTrue(sim.mark_or_break(0, 0))
        self.assertEqual(sim.break_count(0), 7)
        self.assertEqual(sim.carry_over[1][0], [Wall(N, CARRY)])
        self.assertEqual(sim.carry_over[1][1], [Wall(N, CARRY), Wall(H, CARRY), Wall(M, CARRY)])

    def test_given_rollback_enabled_when_unbreaking_trigger_rotation_then_carry_cleared(self):
        sim = self._setup(rollback=True)
        sim.remove(0, 0)  # mark mode is on, so this unbreaks
        self.assertEqual(sim.break_count(0), 6)
        self.assertTrue(sim.carry_over[1].is_empty())
        self.assertFalse(sim.carried_forward[1])

    def test_given_rollback_enabled_when_unbreaking_other_rotation_then_carry_kept(self):
        sim = self._setup(rollback=True)
        sim.boards[3][0] = [Wall(X, PLACED)]
        sim.unbreak(3, 0)
        self.assertEqual(sim.carry_over[1].wall_count(), 4)


class TestCapacityInvariant(unittest.TestCase):
    def test_given_mixed_intents_when_applied_then_lanes_never_exceed_cap(self):
        sim = WallSimulator()
        script = [(r, l) for r in range(2) for l in range(LANES)] * 3
        for step, (rotation, lane) in enumerate(script):
            if step % 5 == 0:
                sim.toggle_mark_mode()
            sim.primary(rotation, lane)
            sim.primary(rotation, (lane + 1) % LANES)
            if step % 7 == 0:
                sim.secondary(rotation, lane)
            for r in range(ROTATIONS):
                for l in range(LANES):
                    self.assertLessEqual(sim.lane_height(r, l), MAX_WALLS)
                self.assertLessEqual(sim.wall_count(r), 11)
                self.assertLessEqual(sim.break_count(r), 7)


if __name__ == '__main__':
    unittest.main()
