"""Error types raised by the library core."""

from typing import Optional


class LibraryError(Exception):
    """Base class for all library errors.

    Attributes:
        hint: Actionable message suitable for showing to the user
    """

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        """Initialize the error.

        Args:
            message: Description of what went wrong
            hint: Optional actionable message (e.g. "Retry sync")
        """
        super().__init__(message)
        self.hint = hint


class StorageError(LibraryError):
    """Durable record store is unreachable or corrupt."""

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        """Initialize with a default retry hint."""
        super().__init__(
            message,
            hint or "Playlist kept for this session only, retry to save it",
        )


class ParseError(LibraryError):
    """Metadata of a single file could not be read."""

    def __init__(self, filename: str, reason: str) -> None:
        """Initialize parse error.

        Args:
            filename: Name of the file whose tags failed to parse
            reason: Underlying error message
        """
        super().__init__(f"Cannot read metadata for {filename}: {reason}")
        self.filename = filename
        self.reason = reason


class PermissionDenied(LibraryError):
    """Access to a directory capability was denied."""

    def __init__(self, playlist_id: str, message: Optional[str] = None) -> None:
        """Initialize permission error for a playlist."""
        super().__init__(
            message or f"Permission denied for playlist {playlist_id}",
            hint="Retry sync and allow access to the folder",
        )
        self.playlist_id = playlist_id


class NotFoundError(LibraryError):
    """A capability record or directory does not exist."""

    pass


class UserCancelled(LibraryError):
    """The directory picker was dismissed without a selection."""

    pass
