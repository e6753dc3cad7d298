"""Exception hierarchy for voxlink."""

from typing import List, Optional


class VoxlinkError(Exception):
    """Base class for all voxlink errors."""


class ConfigError(VoxlinkError):
    """Raised when the configuration file cannot be loaded."""


class StateFileNotConfigured(ConfigError):
    """Raised when a command needs the state file but none is configured."""


class DaemonNotRunning(VoxlinkError):
    """Raised when the daemon's PID lock is absent or stale."""

    def __init__(self, pid_path, stale: bool = False, pid: Optional[int] = None):
        self.pid_path = pid_path
        self.stale = stale
        self.pid = pid
        if stale:
            message = "Voxlink daemon is not running (stale PID file removed)."
        else:
            message = "Voxlink daemon is not running."
        super().__init__(message)


class UnknownProfileError(VoxlinkError):
    """Raised when a profile override names a profile that is not configured."""

    def __init__(self, profile: str, available: List[str]):
        self.profile = profile
        self.available = available
        super().__init__(f"Profile '{profile}' not found.")


class MailboxWriteError(VoxlinkError):
    """Raised when a mailbox file cannot be written."""


class SignalDeliveryError(VoxlinkError):
    """Raised when a control signal cannot be delivered to the daemon."""
