"""Recording overlay model and its cooperative-loop adapter.

The overlay appears while the daemon records or transcribes, shows a rolling
level history and a timer, and reports an error when the daemon disappears
mid-recording. The adapter feeds it from a status bus channel on every main
loop tick without ever blocking the loop.
"""

import logging
import time
import weakref
from collections import deque
from typing import Callable, Optional, Union

from ..bus.channel import ChannelClosed, Empty, Receiver
from ..bus.status_bus import STOPPED_LINE
from ..models.events import BusLine, OverlayState
from ..ui.mainloop import TickResult

logger = logging.getLogger(__name__)

WAVEFORM_BARS = 24
ERROR_HIDE_SECONDS = 5.0
DAEMON_STOPPED_MESSAGE = "Daemon not running - systemctl --user start voxlink"

# Upper bound on lines handled per tick so a backlog cannot stall the loop
MAX_DRAIN = 64
TICK_SECONDS = 0.05


class OverlayModel:
    """State behind the overlay window."""

    def __init__(self,
                 on_state_change: Optional[Callable[[OverlayState], None]] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.on_state_change = on_state_change
        self._clock = clock
        self.state = OverlayState.HIDDEN
        self.level = 0.0
        self.message = ""
        self.recording_start: Optional[float] = None
        self.error_since: Optional[float] = None
        self.levels_history = deque([0.0] * WAVEFORM_BARS, maxlen=WAVEFORM_BARS)

    @property
    def visible(self) -> bool:
        return self.state is not OverlayState.HIDDEN

    @property
    def is_active(self) -> bool:
        return self.state in (OverlayState.RECORDING, OverlayState.TRANSCRIBING)

    def _set_state(self, state: OverlayState) -> None:
        if state is self.state:
            return
        self.state = state
        if self.on_state_change:
            self.on_state_change(state)

    def show_recording(self) -> None:
        self.recording_start = self._clock()
        self.error_since = None
        self.message = ""
        self.levels_history.extend([0.0] * WAVEFORM_BARS)
        self._set_state(OverlayState.RECORDING)

    def show_transcribing(self) -> None:
        self.message = "Transcribing..."
        self._set_state(OverlayState.TRANSCRIBING)

    def show_error(self, message: str) -> None:
        self.message = message
        self.error_since = self._clock()
        self._set_state(OverlayState.ERROR)

    def hide(self) -> None:
        self.recording_start = None
        self.error_since = None
        self.message = ""
        self._set_state(OverlayState.HIDDEN)

    def update_level(self, level: float) -> None:
        self.level = level
        self.levels_history.append(level)

    def apply_line(self, line: Union[BusLine, str]) -> None:
        """Apply one status line; malformed or unknown lines are ignored."""
        if isinstance(line, str):
            line = BusLine(line)
        state_class = line.state_class
        if state_class is None:
            return

        if state_class == "recording":
            if self.state is not OverlayState.RECORDING:
                self.show_recording()
            self.update_level(line.level or 0.0)
        elif state_class == "transcribing":
            if self.state is not OverlayState.TRANSCRIBING:
                self.show_transcribing()
        elif state_class == "idle":
            if self.is_active:
                self.hide()
        elif state_class == "stopped":
            if self.is_active:
                self.show_error(DAEMON_STOPPED_MESSAGE)

    def refresh(self) -> None:
        """Time-based housekeeping: auto-hide errors after a few seconds."""
        if self.state is OverlayState.ERROR and self.error_since is not None:
            if self._clock() - self.error_since >= ERROR_HIDE_SECONDS:
                self.hide()

    def elapsed_seconds(self) -> int:
        if self.recording_start is None:
            return 0
        return max(0, int(self._clock() - self.recording_start))

    def timer_text(self) -> str:
        secs = self.elapsed_seconds()
        return f"{secs // 60:02d}:{secs % 60:02d}"


class OverlayAdapter:
    """Drains a bus channel into an overlay on each main loop tick.

    Holds the overlay weakly; once it is gone the tick returns STOP and the
    channel is closed so the bus sees one consumer fewer.
    """

    def __init__(self, receiver: Receiver, overlay: OverlayModel, max_drain: int = MAX_DRAIN):
        self.receiver = receiver
        self._overlay = weakref.ref(overlay)
        self.max_drain = max_drain

    def tick(self) -> TickResult:
        overlay = self._overlay()
        if overlay is None:
            logger.info("Overlay destroyed, stopping its status tick")
            self.receiver.close()
            return TickResult.STOP

        for _ in range(self.max_drain):
            try:
                line = self.receiver.try_recv()
            except Empty:
                break
            except ChannelClosed:
                logger.info("Status bus closed the overlay channel")
                overlay.apply_line(BusLine(STOPPED_LINE))
                return TickResult.STOP
            overlay.apply_line(line)

        overlay.refresh()
        return TickResult.CONTINUE
