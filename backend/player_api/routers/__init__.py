"""Router exports for the Player API."""
from . import catalog, embed, health, stream, subtitles

__all__ = ["catalog", "embed", "health", "stream", "subtitles"]
