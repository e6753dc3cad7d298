"""Status bus consumers: the recording overlay and the tray icon."""

from .overlay import OverlayAdapter, OverlayModel
from .publisher import OVERLAY_TOPIC, TRAY_TOPIC, StateChangePublisher
from .tray import TrayBridge, TrayModel, start_tray

__all__ = [
    "OverlayAdapter",
    "OverlayModel",
    "OVERLAY_TOPIC",
    "TRAY_TOPIC",
    "StateChangePublisher",
    "TrayBridge",
    "TrayModel",
    "start_tray",
]
