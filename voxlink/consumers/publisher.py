"""Overlay and tray state transitions on the pubsub bus.

The consumer models only know a plain ``on_state_change`` callback. Handing
them a ``StateChangePublisher`` turns every transition into a
``pub.sendMessage`` so a host can follow both consumers without either model
importing it.
"""

import logging
from enum import Enum
from typing import Optional

from pubsub import pub

logger = logging.getLogger(__name__)

OVERLAY_TOPIC = "overlay.state"
TRAY_TOPIC = "tray.state"


class StateChangePublisher:
    """``on_state_change`` callback that broadcasts on one topic.

    Listeners are called as ``listener(state=...)`` on the thread that made
    the transition; the tray changes state on its own thread.
    """

    def __init__(self, topic: str):
        self.topic = topic
        self.last_state: Optional[Enum] = None
        self.transitions = 0

    def __call__(self, state: Enum) -> None:
        previous, self.last_state = self.last_state, state
        self.transitions += 1
        logger.debug(f"{self.topic}: {previous.value if previous else '-'} -> {state.value}")
        pub.sendMessage(self.topic, state=state)
