"""
wallsim.interfaces - User interfaces for the wall simulator

This package contains front-ends that read simulator state and forward
user intents to it.
"""

# Don't import anything here to avoid circular imports
__all__ = []
