"""Subtitle styling and the fixed option sets offered by the settings panel."""
from __future__ import annotations

from dataclasses import asdict, dataclass
import re
from typing import Any

PLAYBACK_SPEEDS: tuple[float, ...] = (0.25, 0.5, 0.75, 1.0, 1.25, 1.5, 1.75, 2.0)
SETTINGS_TABS: tuple[str, ...] = ("speed", "display", "subtitles")
FONT_FAMILIES: tuple[str, ...] = (
    "Inter",
    "Arial",
    "Helvetica",
    "Georgia",
    "Times New Roman",
    "Courier New",
)
TEXT_COLORS: tuple[str, ...] = ("#ffffff", "#ffff00", "#00ff00", "#ff0000", "#0000ff", "#ff00ff")
BACKGROUND_COLORS: tuple[str, ...] = ("#000000", "#333333", "#666666", "#ffffff")
FONT_SIZE_RANGE = (16, 48)
TIMING_STEP = 0.1

_HEX_COLOR_RE = re.compile(r"^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{3})$")


def normalize_hex_color(value: str | None, default: str) -> str:
    """Return ``#rrggbb`` for a hex colour given with or without ``#``."""

    if not value:
        return default
    match = _HEX_COLOR_RE.match(value.strip())
    if not match:
        return default
    digits = match.group(1).lower()
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return f"#{digits}"


def normalize_timing_offset(seconds: float) -> float:
    """Round a subtitle offset to the 0.1 s step the settings panel uses."""

    return round(float(seconds), 1)


@dataclass(slots=True)
class DisplayOptions:
    """Toggles on the display tab."""

    auto_hide_controls: bool = True
    preview_thumbnails: bool = True


@dataclass(slots=True)
class SubtitleDisplaySettings:
    """User-adjustable subtitle styling; lives in memory for one page load."""

    font_size: int = 24
    font_family: str = "Inter"
    text_color: str = "#ffffff"
    background_color: str = "#000000"
    background_opacity: float = 0.0
    timing_offset: float = 0.0

    def background_css(self) -> str:
        """Background colour with the opacity folded in as ``#rrggbbaa``."""

        alpha = round(self.background_opacity * 255)
        return f"{self.background_color}{alpha:02x}"

    def timing_label(self) -> str:
        if self.timing_offset > 0:
            return f"{self.timing_offset}s late"
        if self.timing_offset < 0:
            return f"{abs(self.timing_offset)}s early"
        return "Perfect sync"

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["background_css"] = self.background_css()
        payload["timing_label"] = self.timing_label()
        return payload
