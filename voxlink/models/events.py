"""Event models for the status bus and its consumers."""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Any, Dict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BusLine:
    """One raw JSON line read from the status subprocess."""
    raw: str

    def parse(self) -> Optional[Dict[str, Any]]:
        """Decode the line, or None if it is not a JSON object."""
        try:
            payload = json.loads(self.raw)
        except ValueError:
            logger.debug(f"Dropping malformed status line: {self.raw!r}")
            return None
        if not isinstance(payload, dict):
            return None
        return payload

    @property
    def state_class(self) -> Optional[str]:
        payload = self.parse()
        if payload is None:
            return None
        value = payload.get("class")
        return value if isinstance(value, str) else None

    @property
    def level(self) -> Optional[float]:
        payload = self.parse()
        if payload is None:
            return None
        value = payload.get("level")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return float(value)


class OverlayState(Enum):
    """What the overlay is currently showing."""
    HIDDEN = "hidden"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"
    ERROR = "error"


class TrayState(Enum):
    """Daemon state as seen by the tray."""
    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"
    STOPPED = "stopped"

    @classmethod
    def from_class(cls, name: str) -> "TrayState":
        for state in cls:
            if state.value == name:
                return state
        return cls.STOPPED
