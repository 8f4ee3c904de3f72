from .ru_mapping_repository import RuMappingRepository

__all__ = ["RuMappingRepository"]
