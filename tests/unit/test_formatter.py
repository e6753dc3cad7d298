"""Unit tests for status record formatting."""

import json
from unittest.mock import patch

import pytest

from voxlink.models.status import DaemonState, ExtendedInfo, StatusSnapshot
from voxlink.status.formatter import (
    SERIALIZATION_ERROR_TOOLTIP,
    format_snapshot,
    format_state_json,
    tooltip_for,
)
from voxlink.status.icons import resolve_icons

BASE_FIELDS = ["text", "alt", "class", "tooltip"]


@pytest.fixture
def extended():
    return ExtendedInfo(model="base", device="default", backend="CPU (native)")


@pytest.mark.unit
class TestFormatStateJson:
    """Test cases for the JSON status record."""

    @pytest.mark.parametrize("state", [s.value for s in DaemonState])
    def test_base_fields_for_every_state(self, state):
        """Test base fields for every state."""
        record = json.loads(format_state_json(StatusSnapshot(state)))

        assert list(record) == BASE_FIELDS
        assert record["class"] == state
        assert record["alt"] == state

    def test_recording_with_level(self):
        """Test recording with level."""
        line = format_state_json(StatusSnapshot("recording", level=0.73))
        record = json.loads(line)

        assert '"class":"recording"' in line
        assert '"level":0.73' in line
        assert "model" not in record
        assert "device" not in record
        assert "backend" not in record

    def test_recording_without_level_omits_level(self):
        """Test recording without level omits level."""
        record = json.loads(format_state_json(StatusSnapshot("recording")))
        assert "level" not in record

    def test_level_ignored_outside_recording(self):
        """Test level ignored outside recording."""
        record = json.loads(format_state_json(StatusSnapshot("idle", level=0.5)))
        assert "level" not in record

    def test_zero_level_is_present(self):
        """Test zero level is present."""
        record = json.loads(format_state_json(StatusSnapshot("recording", level=0.0)))
        assert record["level"] == 0.0

    def test_extended_fields_present_as_group(self, extended):
        """Test extended fields present as group."""
        line = format_state_json(StatusSnapshot("idle", extended=extended))
        record = json.loads(line)

        assert '"model":"base"' in line
        assert "Model: base" in record["tooltip"]
        assert record["device"] == "default"
        assert record["backend"] == "CPU (native)"

    @pytest.mark.parametrize("state", ["stopped", "transcribing", "recording"])
    def test_extended_fields_independent_of_state(self, state, extended):
        """Test extended fields independent of state."""
        record = json.loads(format_state_json(StatusSnapshot(state, extended=extended)))
        assert {"model", "device", "backend"} <= set(record)

    def test_field_order_is_stable(self, extended):
        """Test field order is stable."""
        record = json.loads(format_state_json(StatusSnapshot("recording", level=0.2, extended=extended)))
        assert list(record) == BASE_FIELDS + ["level", "model", "device", "backend"]

    def test_unknown_state_passes_through(self):
        """Test unknown state passes through."""
        icons = resolve_icons("text")
        record = json.loads(format_state_json(StatusSnapshot("warming_up"), icons))

        assert record["class"] == "warming_up"
        assert record["alt"] == "warming_up"
        assert record["text"] == icons.idle
        assert record["tooltip"] == "Unknown state"

    @pytest.mark.parametrize("value", [
        'quote " inside',
        "back\\slash",
        "naïve ünïcödé 日本語",
        "new\nline\ttab",
        "\u0000 nul",
    ])
    def test_arbitrary_content_is_valid_json(self, value):
        """Test arbitrary content is valid json."""
        info = ExtendedInfo(model=value, device=value, backend=value)
        record = json.loads(format_state_json(StatusSnapshot(value, extended=info)))

        assert record["class"] == value
        assert record["model"] == value

    def test_fallback_on_serialization_failure(self):
        """Test fallback on serialization failure."""
        with patch("voxlink.status.formatter.build_record", side_effect=ValueError("boom")):
            line = format_state_json(StatusSnapshot("idle"))

        record = json.loads(line)
        assert list(record) == BASE_FIELDS
        assert record["tooltip"] == SERIALIZATION_ERROR_TOOLTIP
        assert record["class"] == "idle"

    def test_fallback_survives_lone_surrogate(self):
        """Test fallback survives lone surrogate."""
        with patch("voxlink.status.formatter.build_record", side_effect=ValueError("boom")):
            line = format_state_json(StatusSnapshot("\ud800"))

        assert line.isascii()
        assert json.loads(line)["class"] == "\ud800"


@pytest.mark.unit
class TestTooltipsAndText:
    """Test cases for tooltips and the text format."""

    def test_tooltip_without_extended(self):
        """Test tooltip without extended."""
        assert tooltip_for("idle") == "Voxlink ready - hold hotkey to record"
        assert tooltip_for("stopped") == "Voxlink not running"

    def test_tooltip_with_extended(self, extended):
        """Test tooltip with extended."""
        assert tooltip_for("recording", extended) == (
            "Recording...\nModel: base\nDevice: default\nBackend: CPU (native)"
        )

    def test_text_format_is_state_name(self):
        """Test text format is state name."""
        assert format_snapshot(StatusSnapshot("recording", level=0.4), "text") == "recording"

    def test_json_format_uses_icons(self):
        """Test json format uses icons."""
        icons = resolve_icons("minimal")
        record = json.loads(format_snapshot(StatusSnapshot("recording"), "json", icons))
        assert record["text"] == "●"
