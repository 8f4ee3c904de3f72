"""Command-line interface for RU Mapping Sync."""
