"""Directory scanner turning one directory capability into a song list.

Enumeration is non-recursive: only the direct children of the directory are
considered. Every audio-eligible file ends up in the result, with fallback
metadata when its tags cannot be read.
"""

import asyncio
import locale
import logging
import unicodedata
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Any, Dict, List, Optional, Sequence

from ...models import FileEntry, Song
from ..capability import DirectoryCapability
from ..metadata import ArtworkStore, MetadataExtractor

logger = logging.getLogger(__name__)

DEFAULT_AUDIO_EXTENSIONS = (".mp3", ".flac", ".wav")


@dataclass
class ScanStatistics:
    """Statistics from one directory scan."""

    entries_seen: int = 0
    eligible: int = 0
    skipped: int = 0
    parse_failures: int = 0
    artwork_extracted: int = 0
    errors: List[str] = dataclass_field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert statistics to dictionary format.

        Returns:
            Dictionary with statistics and limited error list
        """
        return {
            "entries_seen": self.entries_seen,
            "eligible": self.eligible,
            "skipped": self.skipped,
            "parse_failures": self.parse_failures,
            "artwork_extracted": self.artwork_extracted,
            "error_count": len(self.errors),
            "errors": self.errors[:10],
        }


def _base_letters(text: str) -> str:
    # NFKD splits accented letters into base letter plus combining marks
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def title_sort_key(song: Song) -> tuple[str, str, str]:
    """Case-insensitive title order, accents sorting with their base letter.

    Both the accent-free and the full title are collated with the process
    locale (see ``locale.setlocale``); the song id breaks remaining ties.
    """
    folded = song.title.casefold()
    return (
        locale.strxfrm(_base_letters(folded)),
        locale.strxfrm(folded),
        song.id,
    )


class DirectoryScanner:
    """Enumerates a directory and builds its songs."""

    def __init__(
        self,
        extractor: MetadataExtractor,
        artwork_store: Optional[ArtworkStore] = None,
        audio_extensions: Sequence[str] = DEFAULT_AUDIO_EXTENSIONS,
    ) -> None:
        """Initialize directory scanner.

        Args:
            extractor: Metadata extractor used for every eligible file
            artwork_store: Where embedded artwork is materialized, if anywhere
            audio_extensions: Extensions (with dot) always treated as audio
        """
        self.extractor = extractor
        self.artwork_store = artwork_store
        self.audio_extensions = tuple(ext.lower() for ext in audio_extensions)
        self._stats = ScanStatistics()

    def is_audio(self, entry: FileEntry) -> bool:
        """Check whether a directory entry should become a song."""
        if entry.extension in self.audio_extensions:
            return True
        return bool(entry.media_type and entry.media_type.startswith("audio/"))

    async def scan(self, capability: DirectoryCapability) -> List[Song]:
        """Scan a directory and return its songs sorted by title.

        Args:
            capability: Capability of the directory to scan

        Returns:
            List of songs
        """
        stats = ScanStatistics()
        logger.info("Scanning directory: %s", capability.root_path)

        songs: List[Song] = []
        async for entry in capability.entries():
            stats.entries_seen += 1
            if not self.is_audio(entry):
                stats.skipped += 1
                logger.debug("Skipping non-audio entry: %s", entry.name)
                continue

            stats.eligible += 1
            song = await self._build_song(capability, entry, stats)
            if song is not None:
                songs.append(song)

        songs.sort(key=title_sort_key)
        self._stats = stats
        self._log_scan_summary(capability.root_path, stats)
        return songs

    async def _build_song(
        self,
        capability: DirectoryCapability,
        entry: FileEntry,
        stats: ScanStatistics,
    ) -> Optional[Song]:
        """Read and extract a single entry.

        Returns:
            Song, or None if the file could not be read at all
        """
        try:
            data = await capability.read_bytes(entry)
        except OSError as e:
            # Removed or made unreadable after it was listed
            error_msg = f"Cannot read '{entry.name}': {e}"
            logger.warning(error_msg)
            stats.errors.append(error_msg)
            return None

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(
            None, self.extractor.extract, data, entry.name
        )
        if not result.ok:
            stats.parse_failures += 1
            stats.errors.append(str(result.error))

        metadata = result.metadata
        cover_ref = None
        if metadata.picture is not None and self.artwork_store is not None:
            cover_ref = await loop.run_in_executor(
                None, self.artwork_store.store, metadata.picture
            )
            if cover_ref:
                stats.artwork_extracted += 1

        return Song(
            id=Song.make_id(entry.name, entry.last_modified_ms),
            title=metadata.title,
            artist=metadata.artist,
            album=metadata.album,
            cover_ref=cover_ref,
            duration_seconds=metadata.duration_seconds,
            source_ref=entry.source_ref,
        )

    def _log_scan_summary(self, root_path: str, stats: ScanStatistics) -> None:
        """Log summary of scan operation."""
        logger.info(
            "Scan of %s complete: %d entries, %d audio files, %d skipped, "
            "%d with unreadable tags, %d covers extracted",
            root_path,
            stats.entries_seen,
            stats.eligible,
            stats.skipped,
            stats.parse_failures,
            stats.artwork_extracted,
        )
        if stats.errors:
            logger.warning("%d errors during scan", len(stats.errors))

    def get_scan_statistics(self) -> Dict[str, Any]:
        """Get statistics of the most recently completed scan.

        Returns:
            Dictionary with scan statistics
        """
        return self._stats.to_dict()
