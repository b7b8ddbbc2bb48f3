"""Player shell state: control rules, subtitle styling and the per-page session."""

from .controls import KEY_BINDINGS, PlayerState, controls_config, format_time
from .session import PlayerSession
from .settings import DisplayOptions, SubtitleDisplaySettings, normalize_timing_offset

__all__ = [
    "KEY_BINDINGS",
    "DisplayOptions",
    "PlayerSession",
    "PlayerState",
    "SubtitleDisplaySettings",
    "controls_config",
    "format_time",
    "normalize_timing_offset",
]
