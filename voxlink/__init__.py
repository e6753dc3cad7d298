"""Voxlink - status and remote control for the voxlink dictation daemon."""

__version__ = "0.1.0"
