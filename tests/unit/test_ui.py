"""Unit tests for the cooperative main loop and the terminal monitor."""

import io
from unittest.mock import MagicMock, Mock, patch

import pytest
from rich.console import Console

from voxlink.bus.channel import channel
from voxlink.ui.keyboard import ESCAPE, KeyPoller
from voxlink.ui.mainloop import MainLoop, TickResult
from voxlink.ui.monitor import MonitorApp, waveform_text


class ManualClock:
    """Clock whose sleep just advances time."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def time(self):
        return self.now

    def sleep(self, delay):
        self.sleeps.append(delay)
        self.now += delay


@pytest.fixture
def manual_clock():
    return ManualClock()


@pytest.fixture
def loop(manual_clock):
    return MainLoop(clock=manual_clock.time, sleep=manual_clock.sleep)


@pytest.mark.unit
class TestMainLoop:
    """Test cases for the tick scheduler."""

    def test_runs_until_callbacks_stop(self, loop, manual_clock):
        """Test runs until callbacks stop."""
        calls = []

        def tick():
            calls.append(manual_clock.now)
            return TickResult.STOP if len(calls) == 3 else TickResult.CONTINUE

        loop.timeout_add(0.5, tick)
        loop.run()

        assert calls == [0.5, 1.0, 1.5]
        assert loop.pending == 0

    def test_interleaves_by_due_time(self, loop):
        """Test interleaves by due time."""
        order = []

        def make(name, count):
            remaining = [count]

            def tick():
                order.append(name)
                remaining[0] -= 1
                return TickResult.CONTINUE if remaining[0] else TickResult.STOP
            return tick

        loop.timeout_add(0.1, make("fast", 3))
        loop.timeout_add(0.25, make("slow", 1))
        loop.run()

        assert order == ["fast", "fast", "slow", "fast"]

    def test_quit_from_callback(self, loop):
        """Test quit from callback."""
        forever = Mock(return_value=TickResult.CONTINUE)

        def stopper():
            loop.quit()
            return TickResult.STOP

        loop.timeout_add(0.25, forever)
        loop.timeout_add(0.9, stopper)
        loop.run()

        assert forever.call_count == 3
        assert loop.pending == 1

    def test_failing_callback_is_removed(self, loop):
        """Test failing callback is removed."""
        broken = Mock(side_effect=RuntimeError("boom"))
        loop.timeout_add(0.1, broken)
        loop.run()

        broken.assert_called_once()
        assert loop.pending == 0


@pytest.mark.unit
class TestKeyPoller:

    def test_non_terminal_input_yields_nothing(self):
        """Test non terminal input yields nothing."""
        stream = Mock()
        stream.isatty.return_value = False

        with KeyPoller(stream) as keys:
            assert keys.poll() is None


@pytest.fixture
def app(make_config):
    config = make_config({"ui": {"record_command": ["voxlink-test", "record"]}})
    app = MonitorApp(config, console=Console(file=io.StringIO(), width=80))
    app.tray._spawn = Mock()
    return app


@pytest.mark.unit
class TestMonitorApp:
    """Test cases for the `voxlink ui` host."""

    def test_waveform_text(self):
        """Test levels map onto bar glyphs."""
        assert waveform_text([0.0, 0.5, 1.0]) == "▁▅█"

    def test_render_idle(self, app):
        """Test render idle."""
        console = Console(file=io.StringIO(), width=80)
        console.print(app.render())
        output = console.file.getvalue()

        assert "Ready" in output
        assert "hidden" in output

    def test_render_recording(self, app):
        """Test render recording."""
        app.overlay.apply_line('{"class":"recording","level":1.0}')
        console = Console(file=io.StringIO(), width=80)
        console.print(app.render())
        output = console.file.getvalue()

        assert "recording" in output
        assert "00:00" in output
        assert "█" in output

    def test_transitions_are_published(self, app):
        """Test transitions are published."""
        app.overlay.apply_line('{"class":"recording"}')
        app.overlay.apply_line('{"class":"idle"}')
        assert list(app.transitions) == ["overlay -> recording", "overlay -> hidden"]

    def test_keys(self, app):
        """Test the toggle, cancel and unknown keys."""
        app.handle_key("t")
        assert app.tray._spawn.call_args[0][0] == ["voxlink-test", "record", "toggle"]

        app.overlay.apply_line('{"class":"recording"}')
        app.handle_key(ESCAPE)
        assert app.tray._spawn.call_args[0][0] == ["voxlink-test", "record", "cancel"]
        assert not app.overlay.visible

        app.handle_key(None)
        app.handle_key("x")
        assert app.tray._spawn.call_count == 2

    def test_quit_request_stops_loop(self, app, manual_clock):
        """Test quit request stops loop."""
        app.loop = MainLoop(clock=manual_clock.time, sleep=manual_clock.sleep)
        app.loop.timeout_add(0.05, Mock(return_value=TickResult.CONTINUE))
        app.loop.timeout_add(0.25, app._quit_tick)

        app.handle_key("q")
        app.loop.run()

        assert app.loop.pending == 1

    def test_run_stops_bus_on_quit(self, app):
        """Test quitting closes both channels and stops the status bus."""
        overlay_sender, overlay_rx = channel()
        tray_sender, tray_rx = channel()
        app.bus = Mock()
        app.bus.start.return_value = [overlay_rx, tray_rx]
        app.handle_key("q")

        with patch("voxlink.ui.monitor.start_tray") as start_tray, \
                patch("voxlink.ui.monitor.KeyPoller", MagicMock()), \
                patch("voxlink.ui.monitor.Live", MagicMock()):
            app.run()

        start_tray.assert_called_once()
        app.bus.stop.assert_called_once()
        assert not overlay_sender.is_connected
        assert not tray_sender.is_connected
