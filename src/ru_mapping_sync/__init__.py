"""
RU Mapping Sync - radio topology replication job.

Extracts RU/DU/EMS/cell mapping rows from a vendor source database and
replicates them into a local SQLite table with composite-key upserts.
"""

__version__ = "0.1.0"
