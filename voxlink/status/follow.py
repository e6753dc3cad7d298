"""One-shot and follow-mode status reporting.

Follow mode watches the state file's directory and re-reads the state and
level files on every wake-up. The liveness check runs independently of the
file contents: a state file left behind by a dead daemon is never trusted.
"""

import logging
import os
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from ..bus.channel import ChannelClosed, Empty, Receiver, Sender, channel
from ..config import level_file_for
from ..control.pidlock import is_daemon_running
from ..models.status import DaemonState, ExtendedInfo, StatusSnapshot
from .files import read_level, read_state
from .formatter import format_snapshot
from .icons import ResolvedIcons, resolve_icons

logger = logging.getLogger(__name__)

# Short timeout while recording keeps the level meter moving even when
# writes are coalesced into no discrete event.
RECORDING_POLL_SECONDS = 0.05
IDLE_POLL_SECONDS = 0.5

# Our own reads of the state file must not wake us up again
IGNORED_EVENT_TYPES = {"opened", "closed_no_write"}


def print_line(text: str) -> None:
    print(text, flush=True)


class _StateEventHandler(FileSystemEventHandler):
    """Forwards events that touch the state or level file into a channel."""

    def __init__(self, names, sender: Sender):
        super().__init__()
        self.names = set(names)
        self.sender = sender

    def on_any_event(self, event):
        if event.event_type in IGNORED_EVENT_TYPES:
            return
        paths = [event.src_path, getattr(event, "dest_path", "")]
        if not any(os.path.basename(os.fsdecode(p)) in self.names for p in paths if p):
            return
        try:
            self.sender.send(event)
        except ChannelClosed:
            pass


class StateFileWatcher:
    """Change notifications for the state file, delivered through a channel.

    The directory is watched rather than the file because the file may not
    exist yet; the level file lives in the same directory.
    """

    def __init__(self, state_path: Path, observer_factory: Callable[[], Observer] = Observer):
        self.state_path = Path(state_path)
        self._observer_factory = observer_factory
        self._observer = None
        self._sender: Optional[Sender] = None

    def start(self) -> Receiver:
        sender, receiver = channel()
        self._sender = sender
        directory = self.state_path.parent
        handler = _StateEventHandler(
            [self.state_path.name, level_file_for(self.state_path).name], sender
        )

        try:
            directory.mkdir(parents=True, exist_ok=True)
            observer = self._observer_factory()
            observer.schedule(handler, str(directory), recursive=False)
            observer.start()
        except OSError as e:
            logger.warning(f"Cannot watch {directory}, falling back to polling: {e}")
        else:
            self._observer = observer
            logger.info(f"Watching {directory} for state changes")
        return receiver

    def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=2.0)
            self._observer = None
        if self._sender is not None:
            self._sender.close()


class StatusReader:
    """Turns state/level file changes into status lines."""

    def __init__(self,
                 state_path: Path,
                 pid_path: Path,
                 output_format: str = "text",
                 icons: Optional[ResolvedIcons] = None,
                 extended: Optional[ExtendedInfo] = None,
                 is_alive: Optional[Callable[[], bool]] = None,
                 emit: Callable[[str], None] = print_line):
        self.state_path = Path(state_path)
        self.pid_path = Path(pid_path)
        self.output_format = output_format
        self.icons = icons or resolve_icons()
        self.extended = extended
        self._is_alive = is_alive or (lambda: is_daemon_running(self.pid_path))
        self._emit = emit

    def observe(self) -> StatusSnapshot:
        """Read one fresh snapshot; ``stopped`` whenever liveness fails."""
        stopped = StatusSnapshot(DaemonState.STOPPED.value, extended=self.extended)
        if not self._is_alive():
            return stopped

        state = read_state(self.state_path)
        if not state:
            return stopped

        level = None
        if state == DaemonState.RECORDING.value:
            level = read_level(self.state_path)
        return StatusSnapshot(state, level, self.extended)

    def emit(self, snapshot: StatusSnapshot) -> None:
        self._emit(format_snapshot(snapshot, self.output_format, self.icons))

    def run_once(self) -> StatusSnapshot:
        snapshot = self.observe()
        self.emit(snapshot)
        return snapshot

    def _changed(self, last: StatusSnapshot, current: StatusSnapshot) -> bool:
        if self.output_format != "json":
            return current.state != last.state
        return (current.state, current.level) != (last.state, last.level)

    def poll_timeout(self, last: StatusSnapshot) -> float:
        if last.state == DaemonState.RECORDING.value:
            return RECORDING_POLL_SECONDS
        return IDLE_POLL_SECONDS

    def follow(self, events: Optional[Receiver] = None) -> None:
        """Print the current status, then every change until the event channel closes."""
        last = self.run_once()

        watcher = None
        if events is None:
            watcher = StateFileWatcher(self.state_path)
            events = watcher.start()

        try:
            while True:
                try:
                    events.recv(timeout=self.poll_timeout(last))
                except Empty:
                    pass
                except ChannelClosed:
                    logger.info("State watch channel closed, leaving follow mode")
                    return

                current = self.observe()
                if self._changed(last, current):
                    if current.state == DaemonState.STOPPED.value:
                        logger.info("Daemon no longer running, reporting stopped")
                    self.emit(current)
                    last = current
        finally:
            if watcher is not None:
                watcher.stop()
