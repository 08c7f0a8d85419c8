"""
wallsim.game - Core rules for the wall simulator

This package contains the wall and board representation and the rules
engine that mutates them.
"""

from wallsim.game.board import Board, Wall, merge, split
from wallsim.game.rules import Intent, WallEnv, WallSimulator

__all__ = ['Board', 'Wall', 'merge', 'split', 'Intent', 'WallEnv', 'WallSimulator']
