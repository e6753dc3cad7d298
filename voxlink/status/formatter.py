"""Status record formatting.

Turns a :class:`StatusSnapshot` into the JSON line consumed by status bars
(Waybar custom modules and similar) or into plain text. The JSON field names
and their order form a stable contract, see :class:`StatusRecord`.
"""

import json
import logging
from typing import Optional

from ..models.status import ExtendedInfo, StatusRecord, StatusSnapshot
from .icons import ResolvedIcons, resolve_icons

logger = logging.getLogger(__name__)

BASE_TOOLTIPS = {
    "recording": "Recording...",
    "transcribing": "Transcribing...",
    "idle": "Voxlink ready - hold hotkey to record",
    "stopped": "Voxlink not running",
}
UNKNOWN_TOOLTIP = "Unknown state"
SERIALIZATION_ERROR_TOOLTIP = "Serialization error"


def tooltip_for(state: str, extended: Optional[ExtendedInfo] = None) -> str:
    base = BASE_TOOLTIPS.get(state, UNKNOWN_TOOLTIP)
    if extended is None:
        return base
    return (
        f"{base}\nModel: {extended.model}"
        f"\nDevice: {extended.device}\nBackend: {extended.backend}"
    )


def build_record(snapshot: StatusSnapshot, icons: ResolvedIcons) -> StatusRecord:
    """Build the wire record for a snapshot."""
    extended = snapshot.extended
    return StatusRecord(
        text=icons.for_state(snapshot.state),
        alt=snapshot.state,
        class_=snapshot.state,
        tooltip=tooltip_for(snapshot.state, extended),
        level=snapshot.effective_level,
        model=extended.model if extended else None,
        device=extended.device if extended else None,
        backend=extended.backend if extended else None,
    )


def fallback_json(state: str) -> str:
    # ensure_ascii escapes anything, including lone surrogates
    return json.dumps(
        {"text": "", "alt": state, "class": state, "tooltip": SERIALIZATION_ERROR_TOOLTIP},
        ensure_ascii=True,
    )


def format_state_json(snapshot: StatusSnapshot, icons: Optional[ResolvedIcons] = None) -> str:
    """Format a snapshot as one JSON line. Never raises."""
    icons = icons or resolve_icons()
    try:
        return build_record(snapshot, icons).to_json()
    except (ValueError, TypeError) as e:
        logger.warning(f"Status serialization failed for state {snapshot.state!r}: {e}")
        return fallback_json(snapshot.state)


def format_state_text(snapshot: StatusSnapshot) -> str:
    return snapshot.state


def format_snapshot(snapshot: StatusSnapshot, output_format: str, icons: Optional[ResolvedIcons] = None) -> str:
    if output_format == "json":
        return format_state_json(snapshot, icons)
    return format_state_text(snapshot)
