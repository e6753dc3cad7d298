"""Status bus: one upstream status stream shared by several consumers."""

from .channel import ChannelClosed, Receiver, Sender, channel
from .status_bus import STOPPED_LINE, StatusBus, fan_out

__all__ = [
    'ChannelClosed',
    'Receiver',
    'Sender',
    'channel',
    'STOPPED_LINE',
    'StatusBus',
    'fan_out',
]
