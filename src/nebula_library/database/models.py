"""SQLAlchemy database models for persisted directory capabilities."""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class DirectoryRecord(Base):
    """A directory chosen by the user, keyed by playlist id."""

    __tablename__ = "directories"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)

    # Opaque capability token, only ever produced and read by the platform
    token: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.now
    )

    __table_args__ = (Index("idx_directories_created_at", "created_at"),)

    def __repr__(self) -> str:
        """String representation of DirectoryRecord."""
        return f"<DirectoryRecord(id='{self.id}', name='{self.name}')>"
