"""Remote control dispatcher: turns record commands into signals and mailbox files."""

import logging
import os
import signal
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from ..config import PID_FILE_NAME, VoxlinkConfig, runtime_dir
from ..errors import SignalDeliveryError, StateFileNotConfigured, UnknownProfileError
from .mailbox import Mailbox, MailboxKind
from .pidlock import acquire_live_lock

logger = logging.getLogger(__name__)

START_SIGNAL = signal.SIGUSR1
STOP_SIGNAL = signal.SIGUSR2

OUTPUT_MODES = ("type", "clipboard", "paste", "file")


class RecordAction(Enum):
    START = "start"
    STOP = "stop"
    TOGGLE = "toggle"
    CANCEL = "cancel"


@dataclass
class RecordOverrides:
    """Optional one-shot overrides applied to the next recording."""
    output_mode: Optional[str] = None
    file_path: Optional[str] = None
    model: Optional[str] = None
    profile: Optional[str] = None

    def output_mode_text(self) -> Optional[str]:
        """Mailbox content for the output mode; ``file:<path>`` when a path is given."""
        mode = self.output_mode
        if mode is None and self.file_path:
            mode = "file"
        if mode is None:
            return None
        if mode == "file" and self.file_path:
            return f"file:{self.file_path}"
        return mode

    def is_empty(self) -> bool:
        return self.output_mode_text() is None and not self.model and not self.profile


@dataclass
class DispatchResult:
    pid: int
    action: RecordAction
    sent_signal: Optional[signal.Signals] = None
    mailboxes: List[Path] = field(default_factory=list)


def decide_toggle_signal(state_text: Optional[str]) -> signal.Signals:
    """Stop iff the persisted state is exactly ``recording``; start otherwise."""
    if state_text is not None and state_text.strip() == "recording":
        return STOP_SIGNAL
    return START_SIGNAL


def read_persisted_state(state_path: Path) -> Optional[str]:
    try:
        return state_path.read_text(encoding='utf-8')
    except OSError as e:
        logger.debug(f"Could not read state file {state_path}: {e}")
        return None


class RecordDispatcher:
    """Sends record commands to the running daemon.

    Start/stop/toggle are delivered as signals (SIGUSR1/SIGUSR2); cancel is a
    mailbox file so it stays decoupled from the signal path.
    """

    def __init__(self,
                 config: VoxlinkConfig,
                 directory: Optional[Path] = None,
                 kill: Optional[Callable[[int, int], None]] = None):
        self.config = config
        self.directory = Path(directory) if directory is not None else runtime_dir()
        self.pid_path = self.directory / PID_FILE_NAME
        self.mailbox = Mailbox(self.directory)
        self._kill = kill or os.kill

    def dispatch(self, action: RecordAction, overrides: Optional[RecordOverrides] = None) -> DispatchResult:
        """Run one record command.

        Raises:
            DaemonNotRunning: lock file absent or stale (stale lock is removed)
            UnknownProfileError: profile override not configured
            StateFileNotConfigured: toggle without a configured state file
            MailboxWriteError: a mailbox file could not be written
            SignalDeliveryError: the signal could not be delivered
        """
        overrides = overrides or RecordOverrides()
        lock = acquire_live_lock(self.pid_path)
        result = DispatchResult(pid=lock.pid, action=action)

        if action is RecordAction.CANCEL:
            if not overrides.is_empty():
                logger.warning("Ignoring recording overrides for cancel")
            result.mailboxes.append(self.mailbox.post(MailboxKind.CANCEL, "cancel"))
            return result

        # Validate everything before touching the filesystem or signalling
        if overrides.profile and not self.config.has_profile(overrides.profile):
            raise UnknownProfileError(overrides.profile, self.config.profile_names())

        state_path = None
        if action is RecordAction.TOGGLE:
            state_path = self.config.resolve_state_file()
            if state_path is None:
                raise StateFileNotConfigured("Cannot toggle recording without state_file configured.")

        result.mailboxes.extend(self._post_overrides(overrides))

        if action is RecordAction.START:
            sig = START_SIGNAL
        elif action is RecordAction.STOP:
            sig = STOP_SIGNAL
        else:
            # Read-then-signal: the daemon may change state in between, which
            # can cost at most one missed toggle.
            sig = decide_toggle_signal(read_persisted_state(state_path))

        try:
            self._kill(lock.pid, sig)
        except OSError as e:
            raise SignalDeliveryError(f"Failed to send signal to daemon: {e}") from e

        logger.info(f"Sent {sig.name} to daemon pid={lock.pid} for {action.value}")
        result.sent_signal = sig
        return result

    def _post_overrides(self, overrides: RecordOverrides) -> List[Path]:
        written = []
        output_mode = overrides.output_mode_text()
        if output_mode is not None:
            written.append(self.mailbox.post(MailboxKind.OUTPUT_MODE, output_mode))
        if overrides.model:
            written.append(self.mailbox.post(MailboxKind.MODEL, overrides.model))
        if overrides.profile:
            written.append(self.mailbox.post(MailboxKind.PROFILE, overrides.profile))
        return written
