#!/usr/bin/env python3
"""
run.py - Main entry point for the wall rotation simulator

Examples:
    python run.py play
    python run.py --debug demo
    python run.py --rollback-carry play
    python run.py benchmark --iterations 50000 --seed 1
"""

import os
import sys

# Add the project root to Python path to ensure imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from wallsim.interfaces.cli import SimpleCLI  # noqa: E402


def main():
    SimpleCLI().run()


if __name__ == "__main__":
    main()
