"""Sync coordinator: permission checks, (re)scans and persistence.

Permission state machine per playlist::

    UNCHECKED -> GRANTED | DENIED | PROMPT

Startup runs a silent check (no user interaction) for every saved
capability and scans only the granted ones. Explicit syncs must come from a
user action because they may prompt for access.
"""

import itertools
import logging
import time
from typing import BinaryIO, Dict, List, Optional

from ...exceptions import (
    LibraryError,
    NotFoundError,
    PermissionDenied,
    StorageError,
    UserCancelled,
)
from ...models import PermissionState, Playlist, Song, SyncResult, SyncStatus
from ..capability import DirectoryCapability, DirectoryChooser, LocalFilesystemPlatform
from ..filesystem import DirectoryScanner
from ..registry import PlaylistRegistry
from ..store import CapabilityStore

logger = logging.getLogger(__name__)


class SyncCoordinator:
    """Orchestrates directory selection, restore and explicit syncs."""

    def __init__(
        self,
        store: CapabilityStore,
        registry: PlaylistRegistry,
        scanner: DirectoryScanner,
        platform: LocalFilesystemPlatform,
    ) -> None:
        """Initialize sync coordinator.

        Args:
            store: Durable capability store
            registry: In-memory playlist registry
            scanner: Directory scanner
            platform: Creates and restores directory capabilities
        """
        self.store = store
        self.registry = registry
        self.scanner = scanner
        self.platform = platform
        self._capabilities: Dict[str, DirectoryCapability] = {}
        self._permissions: Dict[str, PermissionState] = {}
        self._sequence = itertools.count(1)

    def permission_state(self, playlist_id: str) -> PermissionState:
        """Last known permission state of a playlist."""
        return self._permissions.get(playlist_id, PermissionState.UNCHECKED)

    async def _scan(self, capability: DirectoryCapability) -> List[Song]:
        """Scan a directory, reporting an unreadable listing as LibraryError."""
        try:
            return await self.scanner.scan(capability)
        except OSError as e:
            # The folder vanished or became unreadable after the permission check
            raise LibraryError(
                f"Cannot scan {capability.root_path}: {e}",
                hint="Check that the folder still exists, then retry sync",
            )

    # =========================================================================
    # Directory selection
    # =========================================================================

    async def select_directory(self, chooser: DirectoryChooser) -> Optional[Playlist]:
        """Let the user pick a directory and turn it into a playlist.

        Args:
            chooser: Interactive picker returning a path, or None if dismissed

        Returns:
            The new playlist, the rescanned pre-existing one for a known
            directory, or None if the picker was dismissed or a new
            directory holds no audio files

        Raises:
            NotFoundError: If the picked path is not a directory
            LibraryError: If the directory could not be listed
        """
        try:
            capability = await self.platform.pick_directory(chooser)
        except UserCancelled:
            logger.debug("Directory selection cancelled")
            return None

        existing = self.registry.find_by_root_path(capability.root_path)
        if existing is not None:
            logger.info("Directory %s is already a playlist", capability.root_path)
            return await self._reselect(existing, capability)

        songs = await self._scan(capability)
        if not songs:
            logger.warning("No audio files found in %s", capability.root_path)
            return None

        playlist = Playlist(
            id=f"{capability.name}-{int(time.time() * 1000)}",
            name=capability.name,
            root_path=capability.root_path,
            songs=songs,
        )
        playlist = self.registry.add(playlist)
        self._capabilities[playlist.id] = capability
        self._permissions[playlist.id] = PermissionState.GRANTED
        self._persist(playlist, capability)
        return playlist

    async def _reselect(
        self, playlist: Playlist, capability: DirectoryCapability
    ) -> Playlist:
        """Rescan a known directory picked again, keeping the fresh grant."""
        sequence = next(self._sequence)
        self._capabilities[playlist.id] = capability
        self._permissions[playlist.id] = PermissionState.GRANTED

        songs = await self._scan(capability)
        self.registry.apply_sync_result(playlist.id, songs, sequence)
        self._persist(playlist, capability)
        return self.registry.add(playlist)

    def _persist(self, playlist: Playlist, capability: DirectoryCapability) -> None:
        """Save the capability of a playlist, degrading to session-only."""
        try:
            self.store.save(
                playlist.id, playlist.name, self.platform.serialize(capability)
            )
        except StorageError as e:
            playlist.persisted = False
            logger.warning(
                "Playlist '%s' is kept for this session only: %s (%s)",
                playlist.name,
                e,
                e.hint,
            )
        else:
            playlist.persisted = True

    # =========================================================================
    # Startup restore (silent check)
    # =========================================================================

    async def restore(self) -> List[Playlist]:
        """Rebuild playlists from the store without user interaction.

        Granted capabilities are scanned right away; the others become empty
        shells waiting for an explicit sync.

        Returns:
            Restored playlists in store order
        """
        try:
            records = self.store.list()
        except StorageError as e:
            logger.warning("Cannot restore saved playlists: %s", e)
            return []

        restored: List[Playlist] = []
        for record in records:
            try:
                capability = self.platform.restore(record.token)
            except LibraryError as e:
                logger.error(
                    "Failed to restore playlist '%s': %s", record.display_name, e
                )
                continue

            state = await capability.query_permission()
            self._permissions[record.playlist_id] = state
            self._capabilities[record.playlist_id] = capability

            songs: List[Song] = []
            if state == PermissionState.GRANTED:
                try:
                    songs = await self._scan(capability)
                except LibraryError as e:
                    logger.warning("%s (%s)", e, e.hint)
            else:
                logger.info(
                    "Playlist '%s' needs an explicit sync (permission: %s)",
                    record.display_name,
                    state.value,
                )

            playlist = self.registry.add(
                Playlist(
                    id=record.playlist_id,
                    name=record.display_name,
                    root_path=capability.root_path,
                    songs=songs,
                ),
                activate=False,
            )
            restored.append(playlist)

        logger.info("Restored %d playlist(s)", len(restored))
        return restored

    # =========================================================================
    # Explicit sync
    # =========================================================================

    async def _capability_for(self, playlist_id: str) -> Optional[DirectoryCapability]:
        """Find the capability of a playlist, preferring the store."""
        try:
            record = self.store.get(playlist_id)
        except StorageError as e:
            logger.warning("Store unavailable, using session capability: %s", e)
            return self._capabilities.get(playlist_id)

        if record is None:
            # Session-only playlists never reached the store
            return self._capabilities.get(playlist_id)

        cached = self._capabilities.get(playlist_id)
        if cached is not None:
            return cached
        try:
            capability = self.platform.restore(record.token)
        except LibraryError as e:
            logger.error("Cannot restore capability of %s: %s", playlist_id, e)
            return None
        self._capabilities[playlist_id] = capability
        return capability

    async def sync(self, playlist_id: str) -> SyncResult:
        """Request permission and rescan a playlist.

        Must be called as the direct result of a user action: it may prompt.

        Returns:
            SyncResult with the updated playlist, NOTHING_TO_SYNC when the
            playlist has no capability, or SUPERSEDED when a newer sync of
            the same playlist already applied its result

        Raises:
            PermissionDenied: If access was not granted; songs stay untouched
            LibraryError: If the folder could not be listed; songs stay untouched
        """
        sequence = next(self._sequence)
        capability = await self._capability_for(playlist_id)
        if capability is None or playlist_id not in self.registry:
            logger.info("Nothing to sync for %s", playlist_id)
            return SyncResult(status=SyncStatus.NOTHING_TO_SYNC, sequence=sequence)

        state = await capability.request_permission()
        self._permissions[playlist_id] = state
        if state != PermissionState.GRANTED:
            logger.warning("Sync of %s denied (%s)", playlist_id, state.value)
            raise PermissionDenied(playlist_id)

        songs = await self._scan(capability)
        playlist = self.registry.apply_sync_result(playlist_id, songs, sequence)
        if playlist is None:
            return SyncResult(status=SyncStatus.SUPERSEDED, sequence=sequence)

        # Keep the fresh grant for the next start
        self._persist(playlist, capability)
        logger.info("Synced '%s': %d songs", playlist.name, playlist.song_count)
        return SyncResult(
            status=SyncStatus.SYNCED, playlist=playlist, sequence=sequence
        )

    async def select_playlist(self, playlist_id: str) -> Playlist:
        """Make a playlist active, syncing it first if it has no songs.

        A denied permission is logged; the playlist is still selected.

        Raises:
            KeyError: If no playlist has this ID
        """
        playlist = self.registry.get(playlist_id)
        if playlist is None:
            raise KeyError(playlist_id)

        if not playlist.songs:
            try:
                await self.sync(playlist_id)
            except PermissionDenied as e:
                logger.warning("%s (%s)", e, e.hint)

        return self.registry.set_active(playlist_id) or playlist

    async def open_song(self, playlist_id: str, song: Song) -> BinaryIO:
        """Open the audio stream of a song for the playback layer.

        Raises:
            NotFoundError: If the song has no source or the playlist no
                capability
            PermissionDenied: If the capability is not currently granted
        """
        if song.source_ref is None:
            raise NotFoundError(f"Song '{song.title}' has no local source")

        capability = self._capabilities.get(playlist_id)
        if capability is None:
            raise NotFoundError(f"No capability for playlist {playlist_id}")

        state = await capability.query_permission()
        self._permissions[playlist_id] = state
        if state != PermissionState.GRANTED:
            raise PermissionDenied(playlist_id)
        return await capability.open(song.source_ref)

    def remove(self, playlist_id: str) -> bool:
        """Remove a playlist together with its stored capability.

        Returns:
            False if the removal only holds for this session

        Raises:
            KeyError: If no playlist has this ID
        """
        removed = self.registry.remove(playlist_id)
        self._capabilities.pop(playlist_id, None)
        self._permissions.pop(playlist_id, None)
        return removed
