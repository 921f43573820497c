"""Filesystem module.

Handles scanning directories of local audio files.
"""

from .scanner import DirectoryScanner, ScanStatistics, title_sort_key

__all__ = [
    "DirectoryScanner",
    "ScanStatistics",
    "title_sort_key",
]
