"""Database service owning the SQLite engine and its sessions."""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from sqlalchemy import create_engine, inspect, select
from sqlalchemy.orm import Session, sessionmaker

from .models import Base, DirectoryRecord

logger = logging.getLogger(__name__)


class DatabaseService:
    """Service for database operations and transaction management.

    Created once at process start and closed at shutdown.
    """

    def __init__(self, db_path: Optional[Path] = None) -> None:
        """Initialize database service.

        Args:
            db_path: Path to SQLite database file.
                    If None, uses default ~/.nebula-library/library.db
        """
        if db_path is None:
            db_path = Path.home() / ".nebula-library" / "library.db"

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(f"sqlite:///{self.db_path}", echo=False)
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )

        logger.debug("Database initialized at: %s", self.db_path)
        self.init_db()

    def init_db(self) -> None:
        """Create missing tables."""
        Base.metadata.create_all(bind=self.engine)

    def get_session(self) -> Session:
        """Get a new database session.

        Returns:
            SQLAlchemy Session object

        Note:
            Caller is responsible for closing the session
        """
        return self.SessionLocal()

    def is_initialized(self) -> bool:
        """Check that the directories table exists."""
        return inspect(self.engine).has_table(DirectoryRecord.__tablename__)

    # =========================================================================
    # Directory Operations
    # =========================================================================

    def upsert_directory(
        self, record_id: str, name: str, token: str
    ) -> DirectoryRecord:
        """Insert a directory record or update the existing one.

        The creation timestamp of an existing record is preserved.

        Args:
            record_id: Playlist ID the directory belongs to
            name: Display name of the directory
            token: Opaque capability token

        Returns:
            The stored DirectoryRecord
        """
        with self.get_session() as session:
            record = session.get(DirectoryRecord, record_id)
            if record is None:
                record = DirectoryRecord(
                    id=record_id, name=name, token=token, created_at=datetime.now()
                )
                session.add(record)
                logger.debug("Created directory record: %s", record_id)
            else:
                record.name = name
                record.token = token
                logger.debug("Updated directory record: %s", record_id)
            session.commit()
            return record

    def get_directory(self, record_id: str) -> Optional[DirectoryRecord]:
        """Get a directory record by playlist ID."""
        with self.get_session() as session:
            return session.get(DirectoryRecord, record_id)

    def list_directories(self) -> List[DirectoryRecord]:
        """Get all directory records, oldest first."""
        with self.get_session() as session:
            stmt = select(DirectoryRecord).order_by(
                DirectoryRecord.created_at, DirectoryRecord.id
            )
            return list(session.scalars(stmt))

    def delete_directory(self, record_id: str) -> bool:
        """Delete a directory record.

        Returns:
            True if a record was deleted, False if none existed
        """
        with self.get_session() as session:
            record = session.get(DirectoryRecord, record_id)
            if record is None:
                return False
            session.delete(record)
            session.commit()
            logger.debug("Deleted directory record: %s", record_id)
            return True

    def close(self) -> None:
        """Close database connection."""
        if hasattr(self, "engine"):
            self.engine.dispose()
            logger.debug("Database connection closed")
