from .sync_job import RuMappingSyncJob, SyncResult

__all__ = ["RuMappingSyncJob", "SyncResult"]
