"""Core library modules: capabilities, scanning, storage and sync."""

from .capability import (
    DirectoryCapability,
    LocalDirectoryCapability,
    LocalFilesystemPlatform,
)
from .filesystem import DirectoryScanner, ScanStatistics
from .metadata import ArtworkStore, ExtractionResult, MetadataExtractor
from .registry import PlaylistRegistry
from .store import CapabilityStore
from .sync import SyncCoordinator

__all__ = [
    "ArtworkStore",
    "CapabilityStore",
    "DirectoryCapability",
    "DirectoryScanner",
    "ExtractionResult",
    "LocalDirectoryCapability",
    "LocalFilesystemPlatform",
    "MetadataExtractor",
    "PlaylistRegistry",
    "ScanStatistics",
    "SyncCoordinator",
]
