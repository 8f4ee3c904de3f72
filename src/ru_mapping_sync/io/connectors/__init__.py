"""Source store connectors."""

from .source_extractor import RecordStream, SourceExtractor, map_result_columns

__all__ = ["RecordStream", "SourceExtractor", "map_result_columns"]
