"""Pytest configuration: lets the test modules import ``wallsim`` from a source checkout."""
