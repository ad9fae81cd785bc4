"""
Row Materializer - Applies a mapping set to source rows

Produces target-shaped rows:
- Preview rows keyed by target field id
- Load rows keyed by physical column name
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from mapsync.mapper.mapping import FieldMapping, find_mapping
from mapsync.schema.models import SchemaDefinition
from mapsync.transformer.registry import TransformerRegistry, default_registry

logger = logging.getLogger(__name__)

NULL_MARKER = "NULL"


def format_cell(value: Any) -> str:
    """Render a preview cell, keeping NULL distinct from an empty string."""
    if value is None:
        return NULL_MARKER
    if value == "":
        return '""'
    return str(value)


class RowMaterializer:
    """Builds target rows from source rows and a mapping set"""

    def __init__(self, registry: Optional[TransformerRegistry] = None):
        self.registry = registry or default_registry

    def build_row(
        self,
        schema: SchemaDefinition,
        mappings: Sequence[FieldMapping],
        row: Dict[str, Any],
        key: str = "id",
    ) -> Dict[str, Any]:
        """
        Build one target row

        Args:
            schema: Target schema
            mappings: Mapping set for the schema
            row: Source row {header: value}
            key: "id" to key by field id, "column_name" to key by column

        Returns:
            Target row with one entry per schema field
        """
        target_row: Dict[str, Any] = {}
        mapping_list = list(mappings)

        for target_field in schema.fields:
            mapping = find_mapping(mapping_list, target_field.id)
            if mapping is None:
                target_row[getattr(target_field, key)] = None
                continue

            value = row.get(mapping.source_header) if mapping.source_header else None
            target_row[getattr(target_field, key)] = self.registry.apply(value, mapping.transformations)

        return target_row

    def preview(
        self,
        schema: SchemaDefinition,
        mappings: Sequence[FieldMapping],
        rows: Sequence[Dict[str, Any]],
        limit: Optional[int] = 8,
    ) -> List[Dict[str, Any]]:
        """Preview the first ``limit`` rows, keyed by field id."""
        window = rows if limit is None else rows[:limit]
        return [self.build_row(schema, mappings, row, key="id") for row in window]

    def materialize(
        self,
        schema: SchemaDefinition,
        mappings: Sequence[FieldMapping],
        rows: Sequence[Dict[str, Any]],
    ) -> List[Dict[str, Any]]:
        """Materialize every row for loading, keyed by column name."""
        result = [self.build_row(schema, mappings, row, key="column_name") for row in rows]
        logger.info(f"Materialized {len(result)} rows for {schema.table_name}")
        return result

    @staticmethod
    def has_mapped_fields(mappings: Sequence[FieldMapping]) -> bool:
        """True when at least one field has a source header."""
        return any(m.source_header for m in mappings)
