"""In-memory collection of the playlists known to this session."""

import logging
from typing import Dict, Iterable, List, Optional

from ..exceptions import StorageError
from ..models import Playlist, Song
from .store import CapabilityStore

logger = logging.getLogger(__name__)


class PlaylistRegistry:
    """Holds playlists in insertion order and tracks the active one."""

    def __init__(self, store: CapabilityStore) -> None:
        """Initialize registry.

        Args:
            store: Capability store whose records follow playlist removal
        """
        self.store = store
        self._playlists: Dict[str, Playlist] = {}
        self._active_id: Optional[str] = None
        self._applied_sequence: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._playlists)

    def __contains__(self, playlist_id: object) -> bool:
        return playlist_id in self._playlists

    def all(self) -> List[Playlist]:
        """Get all playlists in insertion order."""
        return list(self._playlists.values())

    def get(self, playlist_id: str) -> Optional[Playlist]:
        """Get a playlist by ID."""
        return self._playlists.get(playlist_id)

    def find_by_root_path(self, root_path: str) -> Optional[Playlist]:
        """Get the playlist backed by a directory path."""
        for playlist in self._playlists.values():
            if playlist.root_path == root_path:
                return playlist
        return None

    @property
    def active(self) -> Optional[Playlist]:
        """Currently selected playlist."""
        if self._active_id is None:
            return None
        return self._playlists.get(self._active_id)

    def set_active(self, playlist_id: Optional[str]) -> Optional[Playlist]:
        """Select a playlist, or clear the selection with None.

        Raises:
            KeyError: If no playlist has this ID
        """
        if playlist_id is not None and playlist_id not in self._playlists:
            raise KeyError(playlist_id)
        self._active_id = playlist_id
        return self.active

    def add(self, playlist: Playlist, activate: bool = True) -> Playlist:
        """Add a playlist unless one with the same root path exists.

        Args:
            playlist: Playlist to add
            activate: Whether the added or existing entry becomes active

        Returns:
            The registered playlist (the pre-existing one for a duplicate)
        """
        existing = self.find_by_root_path(playlist.root_path)
        if existing is not None:
            logger.info(
                "Playlist for %s already exists as %s", playlist.root_path, existing.id
            )
            registered = existing
        else:
            self._playlists[playlist.id] = playlist
            registered = playlist
            logger.debug("Registered playlist %s (%s)", playlist.id, playlist.name)

        if activate:
            self._active_id = registered.id
        return registered

    def remove(self, playlist_id: str) -> bool:
        """Remove a playlist and its stored capability.

        Returns:
            True if the capability record was deleted as well, False if the
            store failed and the removal only holds for this session

        Raises:
            KeyError: If no playlist has this ID
        """
        if playlist_id not in self._playlists:
            raise KeyError(playlist_id)

        playlist = self._playlists.pop(playlist_id)
        self._applied_sequence.pop(playlist_id, None)
        if self._active_id == playlist_id:
            self._active_id = None

        try:
            self.store.delete(playlist_id)
        except StorageError as e:
            logger.warning(
                "Removed playlist '%s' for this session only: %s", playlist.name, e
            )
            return False

        logger.info("Removed playlist '%s'", playlist.name)
        return True

    def apply_sync_result(
        self, playlist_id: str, songs: Iterable[Song], sequence: Optional[int] = None
    ) -> Optional[Playlist]:
        """Replace the songs of a playlist in place.

        Args:
            playlist_id: Playlist to update
            songs: New songs, in display order
            sequence: Sync sequence number; results older than the last
                applied one for this playlist are discarded

        Returns:
            The updated playlist, or None if unknown or the result is stale
        """
        playlist = self._playlists.get(playlist_id)
        if playlist is None:
            logger.debug("Dropping sync result for unknown playlist %s", playlist_id)
            return None

        if sequence is not None:
            last = self._applied_sequence.get(playlist_id, -1)
            if sequence < last:
                logger.info(
                    "Discarding stale sync result #%d for %s (last applied #%d)",
                    sequence,
                    playlist_id,
                    last,
                )
                return None
            self._applied_sequence[playlist_id] = sequence

        playlist.songs = list(songs)
        return playlist

    def artists(self, playlist_id: str) -> List[str]:
        """Get the distinct artists of a playlist, sorted case-insensitively."""
        playlist = self._playlists.get(playlist_id)
        if playlist is None:
            return []
        names = {song.artist for song in playlist.songs if song.artist}
        return sorted(names, key=str.casefold)

    def songs_by_artist(self, playlist_id: str, artist: Optional[str]) -> List[Song]:
        """Get the songs of a playlist, optionally filtered by artist."""
        playlist = self._playlists.get(playlist_id)
        if playlist is None:
            return []
        if artist is None:
            return list(playlist.songs)
        return [song for song in playlist.songs if song.artist == artist]
