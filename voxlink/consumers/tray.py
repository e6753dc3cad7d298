"""System tray model and its asyncio bridge.

The tray lives on its own thread with its own asyncio event loop. The status
bus channel is blocking, so exactly one forwarding thread performs the
blocking receive and hands lines to the event loop through an
``asyncio.Queue``; coroutines never touch the blocking channel.
"""

import asyncio
import logging
import subprocess
import threading
from typing import Callable, List, Optional, Sequence

from ..bus.channel import ChannelClosed, Receiver, Sender
from ..models.events import BusLine, TrayState

logger = logging.getLogger(__name__)

ICON_NAMES = {
    TrayState.IDLE: "audio-input-microphone-symbolic",
    TrayState.RECORDING: "media-record-symbolic",
    TrayState.TRANSCRIBING: "view-refresh-symbolic",
    TrayState.STOPPED: "microphone-sensitivity-muted-symbolic",
}

LABELS = {
    TrayState.IDLE: "Ready",
    TrayState.RECORDING: "Recording…",
    TrayState.TRANSCRIBING: "Transcribing…",
    TrayState.STOPPED: "Daemon inactive",
}

TOOLTIPS = {
    TrayState.IDLE: "Hold the hotkey to dictate",
    TrayState.RECORDING: "Recording in progress",
    TrayState.TRANSCRIBING: "Transcription in progress…",
    TrayState.STOPPED: "The voxlink daemon is not running",
}

_END = object()


class TrayModel:
    """Tray icon state and actions.

    Updated from the tray thread and read from the main thread, hence the lock.
    """

    def __init__(self,
                 record_command: Sequence[str],
                 quit_sender: Optional[Sender] = None,
                 on_state_change: Optional[Callable[[TrayState], None]] = None,
                 spawn: Callable[..., subprocess.Popen] = subprocess.Popen):
        self.record_command = list(record_command)
        self.on_state_change = on_state_change
        self._quit_sender = quit_sender
        self._spawn = spawn
        self._lock = threading.Lock()
        self._state = TrayState.IDLE

    @property
    def state(self) -> TrayState:
        with self._lock:
            return self._state

    def set_state(self, state: TrayState) -> bool:
        with self._lock:
            if state is self._state:
                return False
            self._state = state
        logger.debug(f"Tray state -> {state.value}")
        if self.on_state_change:
            self.on_state_change(state)
        return True

    @property
    def icon_name(self) -> str:
        return ICON_NAMES[self.state]

    @property
    def label(self) -> str:
        return LABELS[self.state]

    def tooltip(self) -> str:
        return f"Voxlink - {self.label}\n{TOOLTIPS[self.state]}"

    def menu_labels(self) -> List[str]:
        record = "Stop recording" if self.state is TrayState.RECORDING else "Record"
        return [record, f"Status: {self.label}", "Quit interface"]

    def _run_record(self, action: str) -> None:
        try:
            self._spawn(
                self.record_command + [action],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.warning(f"Failed to run record {action}: {e}")

    def activate(self) -> None:
        """Primary action: toggle recording."""
        self._run_record("toggle")

    def cancel(self) -> None:
        self._run_record("cancel")

    def request_quit(self) -> None:
        """Ask the host loop to quit; the message is sent at most once."""
        sender, self._quit_sender = self._quit_sender, None
        if sender is None:
            return
        try:
            sender.send("quit")
        except ChannelClosed:
            logger.debug("Quit channel already closed")
        finally:
            sender.close()


class TrayBridge:
    """Bridges a blocking bus receiver into the tray's asyncio loop."""

    def __init__(self, receiver: Receiver, tray: TrayModel):
        self.receiver = receiver
        self.tray = tray
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None
        self.forwarder: Optional[threading.Thread] = None

    def _forward(self) -> None:
        """The only place that performs a blocking receive."""
        try:
            for line in self.receiver:
                self._loop.call_soon_threadsafe(self._queue.put_nowait, line)
        finally:
            try:
                self._loop.call_soon_threadsafe(self._queue.put_nowait, _END)
            except RuntimeError:
                logger.debug("Tray event loop already closed")

    def apply(self, line) -> None:
        if isinstance(line, str):
            line = BusLine(line)
        state_class = line.state_class
        if state_class is not None:
            self.tray.set_state(TrayState.from_class(state_class))

    async def run(self) -> None:
        """Process status lines until the bus channel disconnects."""
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self.forwarder = threading.Thread(target=self._forward, name="tray-forwarder", daemon=True)
        self.forwarder.start()

        while True:
            line = await self._queue.get()
            if line is _END:
                break
            self.apply(line)

        # Bus ended
        self.tray.set_state(TrayState.STOPPED)
        logger.info("Tray status channel closed")

    def stop(self) -> None:
        """Unblock the forwarder; run() then finishes."""
        self.receiver.close()


def start_tray(bridge: TrayBridge) -> threading.Thread:
    """Run the tray bridge on a dedicated thread with its own event loop."""
    thread = threading.Thread(target=asyncio.run, args=(bridge.run(),), name="voxlink-tray", daemon=True)
    thread.start()
    logger.info("Tray thread started")
    return thread
