"""Durable store of directory capability tokens, keyed by playlist id."""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..database import DatabaseService, DirectoryRecord
from ..exceptions import StorageError
from ..models import CapabilityRecord

logger = logging.getLogger(__name__)

_STORAGE_ERRORS = (SQLAlchemyError, OSError)


class CapabilityStore:
    """Persists opaque directory tokens so playlists survive restarts.

    The storage port is injected; ``None`` means storage could not be opened
    at startup and every operation fails with StorageError.
    """

    def __init__(self, db_service: Optional[DatabaseService]) -> None:
        """Initialize capability store.

        Args:
            db_service: Database service instance, or None if unavailable
        """
        self.db_service = db_service

    def _require_db(self) -> DatabaseService:
        if self.db_service is None:
            raise StorageError("Capability storage is not available")
        return self.db_service

    @staticmethod
    def _to_record(row: DirectoryRecord) -> CapabilityRecord:
        return CapabilityRecord(
            playlist_id=row.id,
            display_name=row.name,
            token=row.token,
            created_at=row.created_at,
        )

    def save(self, playlist_id: str, name: str, token: str) -> CapabilityRecord:
        """Insert or update the token of a playlist.

        Raises:
            StorageError: If the store is unavailable
        """
        db = self._require_db()
        try:
            row = db.upsert_directory(playlist_id, name, token)
        except _STORAGE_ERRORS as e:
            logger.error("Failed to save capability for %s: %s", playlist_id, e)
            raise StorageError(f"Cannot save capability for {playlist_id}: {e}")
        return self._to_record(row)

    def list(self) -> List[CapabilityRecord]:
        """Get all saved capability records, oldest first.

        Raises:
            StorageError: If the store is unavailable
        """
        db = self._require_db()
        try:
            rows = db.list_directories()
        except _STORAGE_ERRORS as e:
            logger.error("Failed to list capabilities: %s", e)
            raise StorageError(f"Cannot list saved directories: {e}")
        return [self._to_record(row) for row in rows]

    def get(self, playlist_id: str) -> Optional[CapabilityRecord]:
        """Get the record of a playlist, or None if it has none.

        Raises:
            StorageError: If the store is unavailable
        """
        db = self._require_db()
        try:
            row = db.get_directory(playlist_id)
        except _STORAGE_ERRORS as e:
            logger.error("Failed to read capability for %s: %s", playlist_id, e)
            raise StorageError(f"Cannot read capability for {playlist_id}: {e}")
        return self._to_record(row) if row is not None else None

    def delete(self, playlist_id: str) -> None:
        """Delete the record of a playlist; a missing record is not an error.

        Raises:
            StorageError: If the store is unavailable
        """
        db = self._require_db()
        try:
            deleted = db.delete_directory(playlist_id)
        except _STORAGE_ERRORS as e:
            logger.error("Failed to delete capability for %s: %s", playlist_id, e)
            raise StorageError(
                f"Cannot delete capability for {playlist_id}: {e}",
                hint="Retry removing the playlist",
            )
        if not deleted:
            logger.debug("No capability record to delete for %s", playlist_id)
