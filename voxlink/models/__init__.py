"""Data models for the Voxlink application."""

from .status import DaemonState, ExtendedInfo, StatusSnapshot, StatusRecord
from .events import BusLine, OverlayState, TrayState

__all__ = [
    "DaemonState",
    "ExtendedInfo",
    "StatusSnapshot",
    "StatusRecord",
    "BusLine",
    "OverlayState",
    "TrayState",
]
