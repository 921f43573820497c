"""Nebula library.

Turns local music folders into durable, re-scannable playlists that survive
restarts without asking for folder access again whenever possible.
"""

__version__ = "1.0.0"

from .config import Config
from .core import (
    CapabilityStore,
    DirectoryScanner,
    LocalFilesystemPlatform,
    MetadataExtractor,
    PlaylistRegistry,
    SyncCoordinator,
)
from .exceptions import (
    LibraryError,
    NotFoundError,
    ParseError,
    PermissionDenied,
    StorageError,
    UserCancelled,
)
from .models import CapabilityRecord, PermissionState, Playlist, Song

__all__ = [
    "CapabilityRecord",
    "CapabilityStore",
    "Config",
    "DirectoryScanner",
    "LibraryError",
    "LocalFilesystemPlatform",
    "MetadataExtractor",
    "NotFoundError",
    "ParseError",
    "PermissionDenied",
    "PermissionState",
    "Playlist",
    "PlaylistRegistry",
    "Song",
    "StorageError",
    "SyncCoordinator",
    "UserCancelled",
]
