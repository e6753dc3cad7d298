"""Readers for the daemon-owned state and level files."""

import logging
import math
from pathlib import Path
from typing import Optional

from ..config import level_file_for

logger = logging.getLogger(__name__)


def read_state(state_path: Path) -> Optional[str]:
    """Current state text, or None if the file is missing or unreadable."""
    try:
        return state_path.read_text(encoding='utf-8').strip()
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read state file {state_path}: {e}")
        return None


def parse_level(text: str) -> Optional[float]:
    """Parse a level; anything unparseable or outside [0, 1] is absent, not clamped."""
    try:
        level = float(text.strip())
    except ValueError:
        return None
    if math.isnan(level) or level < 0.0 or level > 1.0:
        return None
    return level


def read_level(state_path: Path) -> Optional[float]:
    """Read the audio level from the level file next to the state file."""
    level_path = level_file_for(state_path)
    try:
        text = level_path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError):
        return None
    return parse_level(text)
