"""Metadata extraction and artwork storage."""

from .artwork import ArtworkStore
from .extractor import ExtractionResult, MetadataExtractor

__all__ = [
    "ArtworkStore",
    "ExtractionResult",
    "MetadataExtractor",
]
