"""Remote control of the daemon through signals and mailbox files."""

from .dispatcher import RecordAction, RecordDispatcher, RecordOverrides, DispatchResult
from .mailbox import Mailbox, MailboxKind
from .pidlock import PidLock, acquire_live_lock, is_daemon_running

__all__ = [
    'RecordAction',
    'RecordDispatcher',
    'RecordOverrides',
    'DispatchResult',
    'Mailbox',
    'MailboxKind',
    'PidLock',
    'acquire_live_lock',
    'is_daemon_running',
]
