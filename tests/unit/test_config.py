"""Unit tests for VoxlinkConfig."""

from pathlib import Path

import pytest

from voxlink.config import (
    DEFAULT_RECORD_COMMAND,
    DEFAULT_STATUS_COMMAND,
    VoxlinkConfig,
    level_file_for,
    runtime_dir,
)
from voxlink.errors import ConfigError
from voxlink.models.status import ExtendedInfo


@pytest.mark.unit
class TestVoxlinkConfig:
    """Test cases for loading and querying configuration."""

    def test_load_yaml(self, config_file):
        """Test loading values from a YAML file."""
        path = config_file("state_file: auto\nwhisper:\n  model: small\n")
        config = VoxlinkConfig(str(path))

        assert config.get('whisper.model') == "small"
        assert config.get('whisper.missing', 'x') == "x"
        assert config.get('state_file.nested') is None

    def test_missing_explicit_file(self, tmp_path):
        """Test missing explicit file."""
        with pytest.raises(ConfigError):
            VoxlinkConfig(str(tmp_path / "nope.yaml"))

    def test_env_var_lookup(self, config_file, monkeypatch):
        """Test env var lookup."""
        path = config_file("whisper:\n  model: tiny\n")
        monkeypatch.setenv("VOXLINK_CONFIG", str(path))
        assert VoxlinkConfig().get('whisper.model') == "tiny"

    def test_missing_default_file_is_empty(self, monkeypatch, tmp_path):
        """Test missing default file is empty."""
        monkeypatch.delenv("VOXLINK_CONFIG", raising=False)
        monkeypatch.setattr("voxlink.config.DEFAULT_CONFIG_PATH", tmp_path / "absent.yaml")
        config = VoxlinkConfig()
        assert config.config == {}
        assert config.resolve_state_file() is None

    def test_invalid_yaml(self, tmp_path):
        """Test invalid yaml."""
        path = tmp_path / "bad.yaml"
        path.write_text("state_file: [unclosed\n")
        with pytest.raises(ConfigError):
            VoxlinkConfig(str(path))

    def test_non_mapping_document(self, tmp_path):
        """Test non mapping document."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            VoxlinkConfig(str(path))

    def test_relative_state_file_resolved_against_config_dir(self, config_file, tmp_path):
        """Test relative state file resolved against config dir."""
        config = VoxlinkConfig(str(config_file("state_file: run/state\n")))
        assert config.resolve_state_file() == tmp_path / "run" / "state"

    def test_auto_state_file(self, make_config, runtime_dir):
        """Test auto state file."""
        config = make_config({"state_file": "auto"})
        assert config.resolve_state_file() == runtime_dir / "state"
        assert config.pid_file() == runtime_dir / "pid"

    def test_runtime_dir_without_xdg(self, monkeypatch):
        """Test runtime dir without xdg."""
        monkeypatch.delenv("XDG_RUNTIME_DIR", raising=False)
        assert runtime_dir().name.startswith("voxlink-")

    def test_level_file_is_sibling(self):
        """Test level file is sibling."""
        assert level_file_for(Path("/run/user/1000/voxlink/state")) == Path("/run/user/1000/voxlink/audio_level")

    def test_profiles(self, make_config):
        """Test profile names come from the profiles section."""
        config = make_config({"profiles": {"slack": {}, "code": {"post_process_command": "x"}}})
        assert config.profile_names() == ["code", "slack"]
        assert config.has_profile("slack")
        assert not config.has_profile("foo")
        assert make_config({"profiles": "oops"}).profile_names() == []

    @pytest.mark.parametrize("backend, label", [
        ("native", "CPU (native)"),
        ("AVX2", "CPU (AVX2)"),
        ("vulkan", "GPU (Vulkan)"),
        ("tpu", "unknown"),
        (None, "unknown"),
    ])
    def test_backend_label(self, make_config, backend, label):
        """Test backend names map to display labels."""
        assert make_config({"whisper": {"backend": backend}}).backend_label() == label

    def test_extended_info_defaults(self, make_config):
        """Test extended info defaults."""
        info = ExtendedInfo.from_config(make_config({}))
        assert info == ExtendedInfo(model="base", device="default", backend="unknown")

    def test_ui_commands(self, make_config):
        """Test the status and record argv used by the UI."""
        config = make_config({})
        assert config.status_command() == DEFAULT_STATUS_COMMAND
        assert config.record_command() == DEFAULT_RECORD_COMMAND
        custom = make_config({"ui": {"status_command": ["my-status", 1]}})
        assert custom.status_command() == ["my-status", "1"]
