"""Command-line interface for the nebula library."""
