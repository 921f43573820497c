"""CLI display and formatting utilities."""

from .formatters import display_error, display_playlists, display_songs

__all__ = [
    "display_error",
    "display_playlists",
    "display_songs",
]
