"""Terminal host for the overlay and the tray.

Starts the status bus with two consumers: the overlay is driven from the
cooperative main loop on this thread, the tray runs on its own thread with
an asyncio loop. Everything is rendered into one rich ``Live`` panel.
"""

import logging
from collections import deque
from typing import Optional

from pubsub import pub
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..bus.channel import ChannelClosed, Empty, channel
from ..bus.status_bus import StatusBus
from ..config import VoxlinkConfig
from ..consumers.overlay import TICK_SECONDS, OverlayAdapter, OverlayModel
from ..consumers.publisher import OVERLAY_TOPIC, TRAY_TOPIC, StateChangePublisher
from ..consumers.tray import TrayBridge, TrayModel, start_tray
from ..models.events import OverlayState, TrayState
from .keyboard import ESCAPE, KeyPoller
from .mainloop import MainLoop, TickResult

logger = logging.getLogger(__name__)

BAR_GLYPHS = "▁▂▃▄▅▆▇█"
QUIT_POLL_SECONDS = 0.25
HISTORY_SIZE = 5

OVERLAY_STYLES = {
    OverlayState.HIDDEN: "dim",
    OverlayState.RECORDING: "bold blue",
    OverlayState.TRANSCRIBING: "grey62",
    OverlayState.ERROR: "bold red",
}


def waveform_text(levels) -> str:
    top = len(BAR_GLYPHS) - 1
    return "".join(BAR_GLYPHS[min(top, max(0, int(level * top + 0.5)))] for level in levels)


class MonitorApp:
    """The `voxlink ui` application."""

    def __init__(self, config: VoxlinkConfig, console: Optional[Console] = None):
        self.config = config
        self.console = console or Console()
        self.loop = MainLoop()

        quit_sender, self.quit_receiver = channel()
        self.overlay = OverlayModel(on_state_change=StateChangePublisher(OVERLAY_TOPIC))
        self.tray = TrayModel(
            config.record_command(),
            quit_sender=quit_sender,
            on_state_change=StateChangePublisher(TRAY_TOPIC),
        )
        self.bus = StatusBus(config.status_command(), consumer_count=2)
        self.transitions = deque(maxlen=HISTORY_SIZE)

        pub.subscribe(self._on_overlay_state, OVERLAY_TOPIC)
        pub.subscribe(self._on_tray_state, TRAY_TOPIC)

    def _on_overlay_state(self, state: OverlayState) -> None:
        self.transitions.append(f"overlay -> {state.value}")

    def _on_tray_state(self, state: TrayState) -> None:
        # Called on the tray thread; deque.append is atomic
        self.transitions.append(f"tray -> {state.value}")

    def render(self) -> Panel:
        overlay = self.overlay
        table = Table.grid(padding=(0, 2))
        table.add_column(justify="right", style="bold")
        table.add_column()

        table.add_row("Tray", f"{self.tray.label}  [dim]({self.tray.icon_name})[/dim]")
        table.add_row("Menu", Text(" · ".join(self.tray.menu_labels()), style="dim"))
        if overlay.visible:
            table.add_row("Overlay", Text(overlay.state.value, style=OVERLAY_STYLES[overlay.state]))
            table.add_row("Level", Text(waveform_text(overlay.levels_history), style=OVERLAY_STYLES[overlay.state]))
            if overlay.state is OverlayState.ERROR:
                table.add_row("", Text(overlay.message, style="red"))
            else:
                table.add_row("Timer", overlay.timer_text())
                if overlay.message:
                    table.add_row("", Text(overlay.message, style="dim"))
        else:
            table.add_row("Overlay", Text("hidden", style="dim"))

        recent = Text("\n".join(self.transitions) or "-", style="dim")
        keys = Text("t toggle · c/esc cancel · q quit", style="dim")
        return Panel(Group(table, Text(""), recent, keys), title="🎙️  Voxlink", border_style="blue")

    def handle_key(self, key: Optional[str]) -> None:
        if key is None:
            return
        if key == "t":
            self.tray.activate()
        elif key in ("c", ESCAPE):
            self.tray.cancel()
            self.overlay.hide()
        elif key == "q":
            self.tray.request_quit()

    def _quit_tick(self) -> TickResult:
        try:
            self.quit_receiver.try_recv()
        except Empty:
            return TickResult.CONTINUE
        except ChannelClosed:
            return TickResult.STOP
        logger.info("Quit requested")
        self.loop.quit()
        return TickResult.STOP

    def run(self) -> None:
        overlay_rx, tray_rx = self.bus.start()
        adapter = OverlayAdapter(overlay_rx, self.overlay)
        bridge = TrayBridge(tray_rx, self.tray)
        start_tray(bridge)

        self.loop.timeout_add(TICK_SECONDS, adapter.tick)
        self.loop.timeout_add(QUIT_POLL_SECONDS, self._quit_tick)

        with KeyPoller() as keys, Live(self.render(), console=self.console, auto_refresh=False) as live:
            def render_tick() -> TickResult:
                self.handle_key(keys.poll())
                live.update(self.render(), refresh=True)
                return TickResult.CONTINUE

            self.loop.timeout_add(TICK_SECONDS, render_tick)
            try:
                self.loop.run()
            except KeyboardInterrupt:
                logger.info("Interrupted")

        bridge.stop()
        overlay_rx.close()
        self.bus.stop()
        logger.info("Voxlink UI stopped")
