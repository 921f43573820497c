"""Content-addressed storage for extracted cover art."""

import hashlib
import logging
from pathlib import Path
from typing import Optional

from ...models import EmbeddedPicture

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/bmp": ".bmp",
}


class ArtworkStore:
    """Writes embedded pictures to disk and hands out path references."""

    def __init__(self, artwork_dir: Path) -> None:
        """Initialize artwork store.

        Args:
            artwork_dir: Directory holding the extracted images
        """
        self.artwork_dir = Path(artwork_dir)

    def store(self, picture: EmbeddedPicture) -> Optional[str]:
        """Materialize a picture and return its reference.

        Identical pictures share one file.

        Returns:
            Path of the stored image, or None if it could not be written
        """
        if not picture.data:
            return None

        digest = hashlib.sha256(picture.data).hexdigest()
        extension = _EXTENSIONS.get(picture.media_type.lower(), ".img")
        target = self.artwork_dir / f"{digest}{extension}"

        if target.exists():
            return str(target)

        try:
            self.artwork_dir.mkdir(parents=True, exist_ok=True)
            target.write_bytes(picture.data)
        except OSError as e:
            logger.warning("Cannot store artwork %s: %s", target.name, e)
            return None

        logger.debug("Stored artwork: %s", target)
        return str(target)
