"""
Playback control rules shared with the embed page.

The page script drives the ``<video>`` element itself; it reads its key map,
step sizes and delays from ``controls_config()`` so the rules live in one place.
``PlayerState`` is the initial UI state rendered into the page.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import Any

from .settings import DisplayOptions

SEEK_STEP_SECONDS = 10.0
VOLUME_STEP = 0.1
CONTROLS_HIDE_DELAY = 3.0
TOAST_DURATION = 3.0
MENUS = ("settings", "server", "subtitles")

KEY_BINDINGS: dict[str, str] = {
    " ": "toggle_play",
    "k": "toggle_play",
    "arrowleft": "seek_backward",
    "arrowright": "seek_forward",
    "arrowup": "volume_up",
    "arrowdown": "volume_down",
    "f": "toggle_fullscreen",
    "m": "toggle_mute",
}


@dataclass(slots=True)
class PlayerState:
    """Initial UI state of a single player instance."""

    current_time: float = 0.0
    volume: float = 1.0
    muted: bool = False
    playback_rate: float = 1.0
    settings_tab: str = "speed"
    display: DisplayOptions = field(default_factory=DisplayOptions)


def controls_config() -> dict[str, Any]:
    """Key map, step sizes and timings consumed by the page script."""

    return {
        "key_bindings": dict(KEY_BINDINGS),
        "seek_step": SEEK_STEP_SECONDS,
        "volume_step": VOLUME_STEP,
        # milliseconds, as the browser timers expect
        "hide_delay_ms": int(CONTROLS_HIDE_DELAY * 1000),
        "toast_ms": int(TOAST_DURATION * 1000),
        "menus": list(MENUS),
    }


def format_time(seconds: float) -> str:
    """Format a playback position as ``MM:SS`` or ``H:MM:SS``."""

    if not math.isfinite(seconds):
        return "0:00"
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"
