"""PID lock handling for the daemon.

The lock file holds the daemon's PID as plain text. Its presence does not
mean the daemon is alive: callers must confirm with :func:`pid_alive`.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..errors import DaemonNotRunning

logger = logging.getLogger(__name__)


def pid_alive(pid: int) -> bool:
    """Probe a PID with the null signal."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)  # Signal 0 just checks if process exists
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists, but owned by someone else
        return True
    return True


def read_pid(path: Path) -> Optional[int]:
    """Read the PID from a lock file; None if absent or not an integer."""
    try:
        return int(path.read_text(encoding='utf-8').strip())
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.debug(f"Unreadable PID file {path}: {e}")
        return None


@dataclass(frozen=True)
class PidLock:
    pid: int
    path: Path

    def is_alive(self) -> bool:
        return pid_alive(self.pid)


def is_daemon_running(path: Path) -> bool:
    """Liveness check used by observers; never modifies the lock file."""
    pid = read_pid(path)
    return pid is not None and pid_alive(pid)


def acquire_live_lock(path: Path) -> PidLock:
    """Resolve the lock file and confirm the daemon is alive.

    A stale lock (unparseable, or naming a process that no longer exists)
    is deleted before reporting that the daemon is not running.

    Raises:
        DaemonNotRunning: if the lock is absent or stale
    """
    if not path.exists():
        raise DaemonNotRunning(path)

    pid = read_pid(path)
    if pid is not None and pid_alive(pid):
        return PidLock(pid=pid, path=path)

    logger.info(f"Removing stale PID file {path} (pid={pid})")
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove stale PID file {path}: {e}")
    raise DaemonNotRunning(path, stale=True, pid=pid)
