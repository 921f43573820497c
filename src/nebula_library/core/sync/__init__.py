"""Sync module.

Coordinates permission checks and rescans of playlist directories.
"""

from .coordinator import SyncCoordinator

__all__ = ["SyncCoordinator"]
