from .mapping import (
    MappingRegistry,
    SourceMapping,
    default_registry,
    get_source_mapping,
    has_source,
    list_sources,
)
from .normalizer import FieldMapper, synthesize_source_id

__all__ = [
    "FieldMapper",
    "MappingRegistry",
    "SourceMapping",
    "default_registry",
    "get_source_mapping",
    "has_source",
    "list_sources",
    "synthesize_source_id",
]
