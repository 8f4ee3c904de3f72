"""Source, query, loader and repository I/O for the sync job."""
