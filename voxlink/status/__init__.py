"""Status schema, formatting and follow-mode reading."""

from .formatter import format_snapshot, format_state_json, format_state_text
from .icons import ResolvedIcons, icons_from_config, resolve_icons
from .follow import StatusReader, StateFileWatcher

__all__ = [
    'format_snapshot',
    'format_state_json',
    'format_state_text',
    'ResolvedIcons',
    'icons_from_config',
    'resolve_icons',
    'StatusReader',
    'StateFileWatcher',
]
