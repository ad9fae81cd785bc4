"""
Schema Module

Target schema catalog and source dataset models:
- Semantic types shared by inference and validation
- Immutable target fields, schemas and mapping groups
- Source dataset with per-column inferred types
"""

from .models import (
    SemanticType,
    TargetField,
    SchemaDefinition,
    MappingGroup,
    SchemaCatalog,
    SourceDataset,
)
from .catalog import load_catalog, DEFAULT_CATALOG

__all__ = [
    "SemanticType",
    "TargetField",
    "SchemaDefinition",
    "MappingGroup",
    "SchemaCatalog",
    "SourceDataset",
    "load_catalog",
    "DEFAULT_CATALOG",
]
