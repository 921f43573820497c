"""Best-effort tag extraction from the raw bytes of one audio file."""

import io
import logging
from dataclasses import dataclass
from pathlib import PurePath
from typing import Any, Optional

from mutagen import File as MutagenFile

from ...exceptions import ParseError
from ...models import EmbeddedPicture, ExtractedMetadata

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER = "Unknown"

# Tag keys per container: ID3 frame, Vorbis comment, MP4 atom, ASF attribute
_TAG_KEYS = {
    "title": ("TIT2", "title", "\xa9nam", "Title"),
    "artist": ("TPE1", "artist", "\xa9ART", "Author"),
    "album": ("TALB", "album", "\xa9alb", "WM/AlbumTitle"),
}

_MP4_COVER_TYPES = {13: "image/jpeg", 14: "image/png"}


@dataclass
class ExtractionResult:
    """Metadata of one file, usable even when parsing failed.

    Attributes:
        metadata: Metadata with fallbacks applied
        error: Tag parse failure, if any
        artwork_error: Artwork extraction failure, if any
    """

    metadata: ExtractedMetadata
    error: Optional[ParseError] = None
    artwork_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        """Whether the tags were parsed without error."""
        return self.error is None


def _text_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    # ID3 frames keep their values in .text
    if hasattr(value, "text"):
        value = value.text
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        value = value[0]
    text = str(value).strip()
    return text or None


def _first_tag(tags: Any, keys: tuple[str, ...]) -> Optional[str]:
    for key in keys:
        try:
            value = tags.get(key)
        except (KeyError, TypeError, ValueError):
            continue
        text = _text_value(value)
        if text:
            return text
    return None


class MetadataExtractor:
    """Reads title, artist, album, duration and artwork through mutagen."""

    def __init__(self, placeholder: str = DEFAULT_PLACEHOLDER) -> None:
        """Initialize extractor.

        Args:
            placeholder: Value used for a missing artist or album
        """
        self.placeholder = placeholder

    def extract(self, data: bytes, filename: str) -> ExtractionResult:
        """Extract metadata from file bytes.

        Never raises for bad input: a parse failure yields fallback metadata
        and is reported on the result.

        Args:
            data: Raw file content
            filename: Name of the file, used as type hint and title fallback

        Returns:
            ExtractionResult with usable metadata
        """
        audio = None
        error = None
        try:
            audio = self._parse(data, filename)
        except Exception as e:
            # mutagen raises more than MutagenError on damaged streams
            error = ParseError(filename, str(e) or type(e).__name__)
            logger.warning("%s", error)

        tags = getattr(audio, "tags", None) or {}
        duration = 0.0
        info = getattr(audio, "info", None)
        length = getattr(info, "length", None)
        if length and length > 0:
            duration = float(length)

        picture = None
        artwork_error = None
        if audio is not None:
            try:
                picture = self._first_picture(audio)
            except Exception as e:
                artwork_error = str(e)
                logger.warning("Cannot read artwork for %s: %s", filename, e)

        metadata = ExtractedMetadata(
            title=_first_tag(tags, _TAG_KEYS["title"]) or PurePath(filename).stem,
            artist=_first_tag(tags, _TAG_KEYS["artist"]) or self.placeholder,
            album=_first_tag(tags, _TAG_KEYS["album"]) or self.placeholder,
            duration_seconds=duration,
            picture=picture,
        )
        return ExtractionResult(metadata, error=error, artwork_error=artwork_error)

    @staticmethod
    def _parse(data: bytes, filename: str) -> Any:
        buffer = io.BytesIO(data)
        # mutagen scores candidate formats using the file name
        buffer.name = filename
        # None means no known format, which counts as an empty tag set
        return MutagenFile(buffer)

    @staticmethod
    def _first_picture(audio: Any) -> Optional[EmbeddedPicture]:
        """Get the first embedded picture of a parsed file."""
        # FLAC and Ogg containers
        pictures = getattr(audio, "pictures", None)
        if pictures:
            pic = pictures[0]
            return EmbeddedPicture(data=pic.data, media_type=pic.mime)

        tags = getattr(audio, "tags", None)
        if tags is None:
            return None

        # ID3 (MP3, WAV)
        if hasattr(tags, "getall"):
            frames = tags.getall("APIC")
            if frames:
                return EmbeddedPicture(data=frames[0].data, media_type=frames[0].mime)
            return None

        # MP4
        covers = tags.get("covr") if hasattr(tags, "get") else None
        if covers:
            cover = covers[0]
            media_type = _MP4_COVER_TYPES.get(getattr(cover, "imageformat", 13))
            return EmbeddedPicture(data=bytes(cover), media_type=media_type)
        return None
