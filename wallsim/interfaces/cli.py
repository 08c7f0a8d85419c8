"""
cli.py - Command-line interface for the wall simulator

This module provides a text front-end that renders the simulator's rotations
and forwards user intents to it, plus a scripted demo and a benchmark.
"""

import argparse
import random
import sys
from typing import List, Optional, Tuple

from wallsim.debug import debug, DebugLevel
from wallsim.game.rules import WallSimulator
from wallsim.utils import LANES, MAX_WALLS, ROTATIONS

HELP_TEXT = """Commands (rotations 1-6, lanes 1-6):
  p R L    primary: place a wall (break in mark mode)
  s R L    secondary: remove own top wall (unbreak in mark mode)
  m        toggle mark mode
  show [R] show all rotations or just rotation R
  reset    clear every rotation
  h        this help
  q        quit"""


def parse_coordinate(tokens: List[str]) -> Tuple[int, int]:
    """
    Parse 1-based "R L" tokens into 0-based (rotation, lane).

    Raises:
        ValueError: If the tokens are missing, not integers, or out of range
    """
    if len(tokens) != 2:
        raise ValueError("expected a rotation and a lane, e.g. 'p 1 3'")
    rotation, lane = int(tokens[0]) - 1, int(tokens[1]) - 1
    if not 0 <= rotation < ROTATIONS:
        raise ValueError(f"rotation must be between 1 and {ROTATIONS}")
    if not 0 <= lane < LANES:
        raise ValueError(f"lane must be between 1 and {LANES}")
    return rotation, lane


class SimpleCLI:
    """Simple command-line front-end for the wall simulator."""

    def __init__(self, simulator: Optional[WallSimulator] = None):
        self.simulator = simulator or WallSimulator()
        self.args = None

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(description='Wall rotation simulator')
        parser.add_argument('--debug', action='store_true', help='Enable debug logging')
        parser.add_argument('--debug_level',
                            choices=[level.name.lower() for level in DebugLevel],
                            default='warning', help='Logging level')
        parser.add_argument('--log_file', type=str, help='Also write logs to this file')
        parser.add_argument('--rollback-carry', action='store_true', dest='rollback_carry',
                            help='Clear forwarded carry-over when the triggering break is reversed')

        subparsers = parser.add_subparsers(dest='command', help='Command to run')
        subparsers.add_parser('play', help='Run an interactive session')
        subparsers.add_parser('demo', help='Replay a scripted carry-forward scenario')
        benchmark_parser = subparsers.add_parser('benchmark', help='Benchmark random intents')
        benchmark_parser.add_argument('--iterations', type=int, default=10000,
                                      help='Number of random intents to apply')
        benchmark_parser.add_argument('--seed', type=int, default=None, help='Random seed')
        return parser

    def parse_args(self, argv: Optional[List[str]] = None) -> None:
        """Parse command-line arguments and apply logging and engine options."""
        self.args = self.build_parser().parse_args(argv)

        if self.args.debug:
            debug.configure(level=DebugLevel.DEBUG)
        else:
            debug.set_from_string(self.args.debug_level)
        if self.args.log_file:
            debug.configure(log_file=self.args.log_file)

        self.simulator.rollback_carry_on_unbreak = self.args.rollback_carry

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Run the CLI based on the parsed arguments."""
        if not self.args:
            self.parse_args(argv)

        if self.args.command == 'play':
            self.play()
        elif self.args.command == 'demo':
            self.demo()
        elif self.args.command == 'benchmark':
            self.benchmark()
        else:
            print("Please specify a command. Use --help for options.")
            sys.exit(1)

    def play(self) -> None:
        """Read commands from stdin until 'q' or end of input."""
        print("Wall rotation simulator. Type 'h' for help.")
        print(self.simulator.render_all())
        while True:
            try:
                line = input("> ")
            except EOFError:
                print()
                return
            output, keep_going = self.handle_command(line)
            if output:
                print(output)
            if not keep_going:
                return

    def handle_command(self, line: str) -> Tuple[str, bool]:
        """
        Apply one command line to the simulator.

        Returns:
            Tuple of (text to show, whether the session continues)
        """
        tokens = line.strip().lower().split()
        if not tokens:
            return "", True
        command, rest = tokens[0], tokens[1:]
        sim = self.simulator

        if command in ('q', 'quit', 'exit'):
            return "Bye.", False
        if command in ('h', 'help', '?'):
            return HELP_TEXT, True
        if command == 'm':
            sim.toggle_mark_mode()
            return f"Mark mode: {'ON' if sim.mark_mode else 'OFF'}", True
        if command == 'reset':
            sim.reset()
            return sim.render_all(), True
        if command == 'show':
            if not rest:
                return sim.render_all(), True
            try:
                rotation = int(rest[0]) - 1
            except ValueError:
                return f"Invalid rotation: {rest[0]}", True
            if not 0 <= rotation < ROTATIONS:
                return f"Rotation must be between 1 and {ROTATIONS}", True
            return sim.render(rotation), True
        if command in ('p', 's'):
            try:
                rotation, lane = parse_coordinate(rest)
            except ValueError as e:
                return f"Invalid input: {e}", True
            has_next = rotation + 1 < ROTATIONS
            next_carry = sim.carry_over[rotation + 1].copy() if has_next else None
            changed = sim.primary(rotation, lane) if command == 'p' else sim.secondary(rotation, lane)
            lines = [sim.render(rotation)]
            # Show the next rotation only when this intent rewrote its carry-over
            if has_next and sim.carry_over[rotation + 1] != next_carry:
                lines.append(sim.render(rotation + 1))
            if not changed:
                lines.append("Nothing changed.")
            if sim.wipe:
                lines.append(f"Wipe! A lane has {MAX_WALLS} or more walls.")
            return "\n".join(lines), True

        return f"Unknown command: {command}. Type 'h' for help.", True

    def demo(self) -> None:
        """Fill rotation 1, break seven walls and show what is carried forward."""
        sim = self.simulator
        sim.reset()
        print("Placing 11 walls in rotation 1 (6 in lane 1, 5 in lane 2)")
        for lane, count in ((0, 6), (1, 5)):
            for _ in range(count):
                sim.place(0, lane)
        print(sim.render(0))

        sim.toggle_mark_mode()
        print("\nBreaking 7 walls (4 in lane 1, 3 in lane 2)")
        for lane, count in ((0, 4), (1, 3)):
            for _ in range(count):
                sim.mark_or_break(0, lane)
        print(sim.render(0))
        print("\nCarried forward:")
        print(sim.render(1))

        sim.toggle_mark_mode()
        print("\nPlacing on top of the carried walls in rotation 2, lane 1")
        sim.place(1, 0)
        print(sim.render(1))

    def benchmark(self) -> None:
        """Time random intents against a fresh simulator."""
        rng = random.Random(self.args.seed)
        sim = self.simulator
        sim.reset()
        iterations = self.args.iterations
        print(f"Running benchmark with {iterations} random intents...")

        changed = 0
        resets = 0
        debug.start_timer("intents")
        for _ in range(iterations):
            rotation = rng.randrange(ROTATIONS)
            lane = rng.randrange(LANES)
            roll = rng.random()
            if roll < 0.1:
                sim.toggle_mark_mode()
            elif roll < 0.7:
                changed += sim.primary(rotation, lane)
            else:
                changed += sim.secondary(rotation, lane)
            if sim.wipe:
                sim.reset()
                resets += 1
        elapsed = debug.end_timer("intents", "cli") or 0.0
        print(f"{iterations} intents ({changed} changed state, {resets} wipes): "
              f"{elapsed:.6f} seconds total, {elapsed / max(iterations, 1) * 1000:.6f} ms per intent")

        debug.start_timer("snapshot")
        for _ in range(max(iterations // 100, 1)):
            sim.get_state()
        elapsed = debug.end_timer("snapshot", "cli") or 0.0
        print(f"State snapshots: {elapsed:.6f} seconds total")


def main(argv: Optional[List[str]] = None):
    """Main entry point for the CLI."""
    SimpleCLI().run(argv)


if __name__ == "__main__":
    main()
