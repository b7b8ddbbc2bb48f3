"""
Conversion between SRT-like timed text, WebVTT documents and cue lists.

Timestamps are handled in seconds as floats. A signed timing offset is added to
every cue boundary and the result is clamped at zero, so shifting subtitles
earlier never produces negative times.
"""
from __future__ import annotations

import base64
import binascii
import re
from typing import Iterable, List, Optional, Sequence

from .models import TimedCue

VTT_HEADER = "WEBVTT"
TIMING_SEPARATOR = "-->"
FALLBACK_CUE_END = "00:10:00.000"

_TIMESTAMP_RE = re.compile(r"(\d+):(\d+):(\d+)[,.](\d+)")


class SubtitleError(RuntimeError):
    """Raised when subtitle text cannot be decoded or converted."""


def srt_time_to_seconds(timestamp: str) -> float:
    """
    Convert an ``H:MM:SS,mmm`` (or ``H:MM:SS.mmm``) timestamp to seconds.

    Fractions are right-padded or truncated to milliseconds. Unparsable input
    yields ``0.0``.

    Example:
        >>> srt_time_to_seconds("00:01:30,500")
        90.5
    """
    match = _TIMESTAMP_RE.search(timestamp)
    if not match:
        return 0.0
    hours, minutes, seconds, fraction = match.groups()
    millis = int(fraction.ljust(3, "0")[:3])
    return int(hours) * 3600 + int(minutes) * 60 + int(seconds) + millis / 1000


def seconds_to_vtt(seconds: float) -> str:
    """
    Convert seconds to a zero-padded ``HH:MM:SS.mmm`` timestamp.

    Example:
        >>> seconds_to_vtt(90.5)
        '00:01:30.500'
    """
    total_millis = max(0, round(seconds * 1000))
    hours, remainder = divmod(total_millis, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs, millis = divmod(remainder, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"


def apply_offset(seconds: float, offset: float) -> float:
    return max(0.0, seconds + offset)


def is_srt_like(text: str) -> bool:
    return TIMING_SEPARATOR in text


def _split_timing(line: str) -> tuple[str, str]:
    start, _, end = line.partition(TIMING_SEPARATOR)
    return start.strip(), end.strip()


def _collect_text(lines: Sequence[str], index: int) -> tuple[List[str], int]:
    collected: List[str] = []
    while index < len(lines) and lines[index].strip() != "":
        collected.append(lines[index])
        index += 1
    return collected, index


def convert_to_vtt(text: str, offset: float = 0.0) -> str:
    """Normalize subtitle text into a WebVTT document, shifting cues by ``offset`` seconds.

    Input without any ``-->`` separator is treated as plain text and wrapped in a
    single ten-minute cue.
    """
    if not is_srt_like(text):
        flattened = text.replace("\n", " ")
        return f"{VTT_HEADER}\n\n00:00:00.000 {TIMING_SEPARATOR} {FALLBACK_CUE_END}\n{flattened}"

    lines = text.replace("\r", "").split("\n")
    out: List[str] = [VTT_HEADER, ""]
    i = 0
    while i < len(lines):
        line = lines[i].strip()
        if TIMING_SEPARATOR not in line:
            # index lines, headers and stray text outside a cue
            i += 1
            continue

        start, end = _split_timing(line)
        start_sec = apply_offset(srt_time_to_seconds(start), offset)
        end_sec = apply_offset(srt_time_to_seconds(end), offset)
        out.append(f"{seconds_to_vtt(start_sec)} {TIMING_SEPARATOR} {seconds_to_vtt(end_sec)}")

        text_lines, i = _collect_text(lines, i + 1)
        out.extend(text_lines)
        out.append("")
    return "\n".join(out)


def parse_vtt_to_cues(vtt: str) -> List[TimedCue]:
    """Parse a WebVTT document into cues ordered by start time."""

    lines = vtt.replace("\r", "").split("\n")
    cues: List[TimedCue] = []
    i = 1 if lines and lines[0].startswith(VTT_HEADER) else 0
    while i < len(lines):
        line = lines[i].strip()
        if TIMING_SEPARATOR not in line:
            i += 1
            continue

        start, end = _split_timing(line)
        text_lines, i = _collect_text(lines, i + 1)
        cues.append(TimedCue(srt_time_to_seconds(start), srt_time_to_seconds(end), text_lines))

    cues.sort(key=lambda cue: cue.start)
    return cues


def convert_to_cues(text: str, offset: float = 0.0) -> List[TimedCue]:
    return parse_vtt_to_cues(convert_to_vtt(text, offset))


def find_active_cue(cues: Iterable[TimedCue], position: float) -> Optional[TimedCue]:
    """Return the first cue whose interval contains ``position``."""

    for cue in cues:
        if cue.contains(position):
            return cue
    return None


def encode_data_url(text: str) -> str:
    payload = base64.b64encode(text.encode("utf-8")).decode("ascii")
    return f"data:text/plain;base64,{payload}"


def decode_data_url(url: str) -> str:
    """Decode an inline ``data:`` URL carrying base64 subtitle text."""

    header, sep, payload = url.partition(",")
    if not url.startswith("data:") or not sep:
        raise SubtitleError("Not a data URL")
    if not header.endswith(";base64"):
        return payload
    try:
        return base64.b64decode(payload).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError) as exc:
        raise SubtitleError(f"Invalid base64 payload: {exc}") from exc
