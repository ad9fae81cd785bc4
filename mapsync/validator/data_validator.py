"""Source/target type compatibility validation."""
from enum import Enum
from typing import Dict, List, Optional, Sequence

from mapsync.mapper.mapping import FieldMapping, find_mapping
from mapsync.schema.models import SchemaDefinition, SemanticType, SourceDataset, TargetField


class ValidationStatus(Enum):
    """Advisory classification of a field mapping."""

    UNSET = ("unset", "", "")
    MATCH = ("match", "Schema Match", "Verified semantic & structural alignment.")
    CAST_REQUIRED = (
        "cast-required",
        "Type Cast Required",
        "Numeric casting required; add a To Number transformation.",
    )
    PARSE_REQUIRED = (
        "parse-required",
        "Date Parsing Required",
        "Use the To Date transformation for ISO conversion.",
    )
    MISMATCH = (
        "mismatch",
        "Inconsistent Types",
        "Detected potential data corruption if imported.",
    )

    def __init__(self, code: str, label: str, reason: str):
        self.code = code
        self.label = label
        self.reason = reason


class DataValidator:
    """Compares inferred source types with declared target types."""

    def classify(
        self,
        target_field: TargetField,
        mapping: Optional[FieldMapping],
        dataset: SourceDataset,
    ) -> ValidationStatus:
        """Classify one field mapping. Advisory only, never blocks."""
        if mapping is None or not mapping.source_header:
            return ValidationStatus.UNSET
        # Registry loaded against a different upload
        if not dataset.has_header(mapping.source_header):
            return ValidationStatus.MISMATCH

        source_type = dataset.inferred_type(mapping.source_header)
        target_type = target_field.type

        if source_type == target_type:
            return ValidationStatus.MATCH
        if target_type == SemanticType.NUMERIC and source_type == SemanticType.TEXT:
            return ValidationStatus.CAST_REQUIRED
        if target_type == SemanticType.TIMESTAMP and source_type == SemanticType.TEXT:
            return ValidationStatus.PARSE_REQUIRED
        return ValidationStatus.MISMATCH

    def validate(
        self,
        schema: SchemaDefinition,
        mappings: Sequence[FieldMapping],
        dataset: SourceDataset,
    ) -> Dict[str, ValidationStatus]:
        """Classify every field of a schema: {field_id: status}."""
        return {
            f.id: self.classify(f, find_mapping(list(mappings), f.id), dataset)
            for f in schema.fields
        }

    def warnings(
        self,
        schema: SchemaDefinition,
        mappings: Sequence[FieldMapping],
        dataset: SourceDataset,
    ) -> List[str]:
        """Advisory messages: unmapped required fields and type mismatches."""
        messages = []
        statuses = self.validate(schema, mappings, dataset)

        for target_field in schema.fields:
            status = statuses[target_field.id]
            if status == ValidationStatus.UNSET and target_field.required:
                messages.append(
                    f"Required field {schema.table_name}.{target_field.column_name} is unmapped"
                )
            elif status == ValidationStatus.MISMATCH:
                messages.append(
                    f"{schema.table_name}.{target_field.column_name}: {status.label} - {status.reason}"
                )

        return messages
