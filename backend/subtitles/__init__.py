"""Subtitle discovery, download and timing conversion."""

from .converter import (
    SubtitleError,
    convert_to_cues,
    convert_to_vtt,
    decode_data_url,
    encode_data_url,
    find_active_cue,
    parse_vtt_to_cues,
    seconds_to_vtt,
    srt_time_to_seconds,
)
from .loader import LoadedSubtitle, SubtitleLoader, UnsafeSubtitleURLError, ensure_public_url
from .models import RainsubsTrack, SubtitleTrack, TimedCue, WyzieTrack
from .providers import (
    RainsubsProvider,
    SubtitleAggregator,
    SubtitleFetchError,
    WyzieProvider,
    order_tracks,
)

__all__ = [
    "LoadedSubtitle",
    "RainsubsProvider",
    "RainsubsTrack",
    "SubtitleAggregator",
    "SubtitleError",
    "SubtitleFetchError",
    "SubtitleLoader",
    "SubtitleTrack",
    "TimedCue",
    "UnsafeSubtitleURLError",
    "WyzieProvider",
    "WyzieTrack",
    "convert_to_cues",
    "convert_to_vtt",
    "decode_data_url",
    "encode_data_url",
    "ensure_public_url",
    "find_active_cue",
    "order_tracks",
    "parse_vtt_to_cues",
    "seconds_to_vtt",
    "srt_time_to_seconds",
]
