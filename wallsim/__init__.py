"""
wallsim - Rules engine for a lane-based wall-placement board game

This package tracks walls placed, broken and carried forward across a fixed
sequence of rotations, with a Gymnasium environment and a command-line
front-end on top of the engine.
"""

__version__ = '0.1.0'
