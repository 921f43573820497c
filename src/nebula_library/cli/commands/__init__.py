"""CLI command modules."""

from .library import (
    LibraryApp,
    add_command,
    list_command,
    remove_command,
    songs_command,
    sync_command,
)

__all__ = [
    "LibraryApp",
    "add_command",
    "list_command",
    "remove_command",
    "songs_command",
    "sync_command",
]
