"""Database package: the durable record store behind the capability store."""

from .models import Base, DirectoryRecord
from .service import DatabaseService

__all__ = [
    "Base",
    "DirectoryRecord",
    "DatabaseService",
]
