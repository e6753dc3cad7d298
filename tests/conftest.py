"""Pytest configuration and fixtures for Voxlink tests."""

import io
import os
import logging
from pathlib import Path
from unittest.mock import Mock

import pytest

from voxlink.config import VoxlinkConfig


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without real daemons or terminals")


@pytest.fixture
def runtime_dir(tmp_path, monkeypatch):
    """Point the per-user runtime directory at a temporary location."""
    monkeypatch.setenv("XDG_RUNTIME_DIR", str(tmp_path))
    path = tmp_path / "voxlink"
    path.mkdir()
    return path


@pytest.fixture
def live_pid_file(runtime_dir):
    """A PID lock naming the test process itself, which is certainly alive."""
    pid_path = runtime_dir / "pid"
    pid_path.write_text(f"{os.getpid()}\n")
    return pid_path


@pytest.fixture
def dead_pid():
    """A PID that no process can own."""
    return 2 ** 22 + 1


@pytest.fixture
def state_file(runtime_dir):
    return runtime_dir / "state"


@pytest.fixture
def make_config(tmp_path):
    """Build a VoxlinkConfig from a mapping."""
    def _make(data=None):
        data = dict(data or {})
        data.setdefault("logging", {"file_path": str(tmp_path / "voxlink.log"), "console_output": False})
        return VoxlinkConfig.from_dict(data, base_dir=tmp_path)
    return _make


@pytest.fixture
def config_file(tmp_path):
    """Write a YAML config file and return its path."""
    def _write(text: str = "") -> Path:
        path = tmp_path / "config.yaml"
        log_path = tmp_path / "voxlink.log"
        path.write_text(
            f"logging:\n  file_path: {log_path}\n  console_output: false\n" + text
        )
        return path
    return _write


class FakeProcess:
    """Stand-in for a subprocess.Popen with a canned stdout."""

    def __init__(self, lines, pid=4242):
        self.stdout = io.StringIO("".join(f"{line}\n" for line in lines))
        self.pid = pid
        self.returncode = None
        self.terminate = Mock()
        self.kill = Mock()

    def poll(self):
        return self.returncode

    def wait(self, timeout=None):
        self.returncode = 0
        return 0


@pytest.fixture
def fake_process():
    return FakeProcess
