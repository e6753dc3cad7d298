"""Icon themes for status-bar display text."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_THEME = "emoji"

ICON_THEMES: Dict[str, Dict[str, str]] = {
    "emoji": {
        "idle": "🎙️",
        "recording": "🎤",
        "transcribing": "⏳",
        "stopped": "",
    },
    "nerd-font": {
        "idle": "\uf130",
        "recording": "\uf111",
        "transcribing": "\uf110",
        "stopped": "\uf131",
    },
    "minimal": {
        "idle": "○",
        "recording": "●",
        "transcribing": "◐",
        "stopped": "×",
    },
    "text": {
        "idle": "idle",
        "recording": "rec",
        "transcribing": "...",
        "stopped": "off",
    },
}


@dataclass(frozen=True)
class ResolvedIcons:
    idle: str
    recording: str
    transcribing: str
    stopped: str

    def for_state(self, state: str) -> str:
        """Icon for a state name; unknown states use the idle icon."""
        return {
            "idle": self.idle,
            "recording": self.recording,
            "transcribing": self.transcribing,
            "stopped": self.stopped,
        }.get(state, self.idle)


def resolve_icons(theme: Optional[str] = None, overrides: Optional[Dict[str, str]] = None) -> ResolvedIcons:
    """Resolve a theme name plus per-state overrides into concrete icons."""
    name = theme or DEFAULT_THEME
    icons = ICON_THEMES.get(name)
    if icons is None:
        logger.warning(f"Unknown icon theme '{name}', falling back to '{DEFAULT_THEME}'")
        icons = ICON_THEMES[DEFAULT_THEME]

    merged = dict(icons)
    for state, icon in (overrides or {}).items():
        if state in merged and isinstance(icon, str):
            merged[state] = icon

    return ResolvedIcons(**merged)


def icons_from_config(config, theme_override: Optional[str] = None) -> ResolvedIcons:
    """Resolve icons from the `status` config section, honoring a CLI theme override."""
    theme = theme_override or config.get('status.icon_theme', DEFAULT_THEME)
    overrides = config.get('status.icons', {})
    if not isinstance(overrides, dict):
        overrides = {}
    return resolve_icons(theme, overrides)
