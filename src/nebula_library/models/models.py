"""Data models for the nebula library."""

from datetime import datetime
from enum import Enum
from pathlib import PurePath
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class PermissionState(str, Enum):
    """Whether a directory capability may be used without a fresh gesture."""

    UNCHECKED = "unchecked"
    GRANTED = "granted"
    DENIED = "denied"
    PROMPT = "prompt"


class SyncStatus(str, Enum):
    """Outcome of an explicit sync."""

    SYNCED = "synced"
    NOTHING_TO_SYNC = "nothing_to_sync"
    SUPERSEDED = "superseded"


class Song(BaseModel):
    """Represents one audio file of a playlist."""

    id: str
    title: str
    artist: str
    album: str
    cover_ref: Optional[str] = None
    duration_seconds: float = 0.0  # 0 means unknown
    source_ref: Optional[str] = None

    @property
    def duration_formatted(self) -> str:
        """Get formatted duration string (mm:ss)."""
        if not self.duration_seconds:
            return "--:--"
        total = int(self.duration_seconds)
        return f"{total // 60}:{total % 60:02d}"

    @staticmethod
    def make_id(filename: str, last_modified_ms: int) -> str:
        """Build the stable identity of a file from its name and mtime."""
        return f"{filename}-{last_modified_ms}"


class Playlist(BaseModel):
    """Represents a playlist backed by one directory capability."""

    id: str
    name: str
    root_path: str
    songs: List[Song] = []
    persisted: bool = True

    @property
    def song_count(self) -> int:
        """Get number of songs in playlist."""
        return len(self.songs)


class CapabilityRecord(BaseModel):
    """Durable record of a directory capability token."""

    playlist_id: str
    display_name: str
    token: str
    created_at: datetime

    model_config = ConfigDict(frozen=True)


class FileEntry(BaseModel):
    """A direct child file of a scanned directory."""

    name: str
    media_type: Optional[str] = None
    last_modified_ms: int
    size: int = 0
    source_ref: str

    @property
    def stem(self) -> str:
        """File name without extension."""
        return PurePath(self.name).stem

    @property
    def extension(self) -> str:
        """Lower-case extension including the dot."""
        return PurePath(self.name).suffix.lower()


class EmbeddedPicture(BaseModel):
    """Raw artwork embedded in an audio file."""

    data: bytes
    media_type: str = "image/jpeg"

    @field_validator("media_type", mode="before")
    @classmethod
    def validate_media_type(cls, v: Optional[str]) -> str:
        """Default missing media types to JPEG."""
        return v or "image/jpeg"


class ExtractedMetadata(BaseModel):
    """Best-effort metadata of a single file."""

    title: str
    artist: str
    album: str
    duration_seconds: float = 0.0
    picture: Optional[EmbeddedPicture] = None


class SyncResult(BaseModel):
    """Result of an explicit sync."""

    status: SyncStatus
    playlist: Optional[Playlist] = None
    sequence: int = 0
