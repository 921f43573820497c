"""Domain models for the nebula library."""

from .models import (
    CapabilityRecord,
    EmbeddedPicture,
    ExtractedMetadata,
    FileEntry,
    PermissionState,
    Playlist,
    Song,
    SyncResult,
    SyncStatus,
)

__all__ = [
    "CapabilityRecord",
    "EmbeddedPicture",
    "ExtractedMetadata",
    "FileEntry",
    "PermissionState",
    "Playlist",
    "Song",
    "SyncResult",
    "SyncStatus",
]
