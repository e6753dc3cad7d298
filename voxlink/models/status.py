"""Status data models shared by the reader, the bus and the consumers."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DaemonState(Enum):
    """States reported by the daemon.

    STOPPED is never written by the daemon; consumers infer it when the
    liveness check fails.
    """
    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ExtendedInfo:
    """Descriptive details about the daemon's active configuration."""
    model: str
    device: str
    backend: str

    @classmethod
    def from_config(cls, config) -> "ExtendedInfo":
        return cls(
            model=str(config.get('whisper.model', 'base')),
            device=str(config.get('audio.device', 'default')),
            backend=config.backend_label(),
        )


@dataclass(frozen=True)
class StatusSnapshot:
    """One observation of the daemon state.

    ``state`` is kept as raw text so that unknown, future state names pass
    through to the wire record untouched.
    """
    state: str
    level: Optional[float] = None  # 0.0-1.0, meaningful only while recording
    extended: Optional[ExtendedInfo] = None

    @property
    def effective_level(self) -> Optional[float]:
        if self.state == DaemonState.RECORDING.value:
            return self.level
        return None


class StatusRecord(BaseModel):
    """JSON status record consumed by status bars and the GUI.

    STABILITY: field names and their order must not change between minor
    releases. ``text``, ``alt``, ``class`` and ``tooltip`` are always present;
    the optional fields are omitted (never null) when absent.
    """
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    text: str
    alt: str
    class_: str = Field(alias="class")
    tooltip: str
    level: Optional[float] = None
    model: Optional[str] = None
    device: Optional[str] = None
    backend: Optional[str] = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
