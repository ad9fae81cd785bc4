"""Field mapping and saved configuration models."""
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from mapsync.errors import ConfigurationError
from mapsync.schema.models import SchemaDefinition
from mapsync.transformer.steps import TransformationStep, step_from_dict


@dataclass(frozen=True)
class FieldMapping:
    """Link from one target field to a source column, plus its pipeline."""

    target_field_id: str
    source_header: Optional[str] = None
    transformations: Tuple[TransformationStep, ...] = ()
    semantic_reasoning: Optional[str] = None
    confidence: Optional[float] = None

    @property
    def is_mapped(self) -> bool:
        return bool(self.source_header)

    def with_header(self, header: Optional[str], **provenance: Any) -> "FieldMapping":
        """Return a copy pointing at another header, keeping the pipeline."""
        return replace(
            self,
            source_header=header,
            semantic_reasoning=provenance.get("semantic_reasoning"),
            confidence=provenance.get("confidence"),
        )

    def with_steps(self, steps) -> "FieldMapping":
        return replace(self, transformations=tuple(steps))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the registry wire shape."""
        data: Dict[str, Any] = {
            "targetFieldId": self.target_field_id,
            "sourceHeader": self.source_header,
            "transformations": [s.to_dict() for s in self.transformations],
        }
        if self.semantic_reasoning is not None:
            data["semanticReasoning"] = self.semantic_reasoning
        if self.confidence is not None:
            data["confidence"] = self.confidence
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldMapping":
        """Build from the registry wire shape."""
        try:
            target_field_id = data["targetFieldId"]
        except KeyError:
            raise ConfigurationError(f"Field mapping without targetFieldId: {data}")
        confidence = data.get("confidence")
        return cls(
            target_field_id=target_field_id,
            source_header=data.get("sourceHeader") or None,
            transformations=tuple(
                step_from_dict(s) for s in data.get("transformations") or []
            ),
            semantic_reasoning=data.get("semanticReasoning"),
            confidence=float(confidence) if confidence is not None else None,
        )


MappingSet = List[FieldMapping]


def empty_mapping_set(schema: SchemaDefinition) -> MappingSet:
    """One unmapped placeholder per target field, in schema order."""
    return [FieldMapping(target_field_id=f.id) for f in schema.fields]


def normalize_mapping_set(schema: SchemaDefinition, mappings: List[FieldMapping]) -> MappingSet:
    """
    Align a mapping list with its schema.

    Keeps the first mapping per target field, drops mappings for fields the
    schema does not define, fills the gaps with placeholders and returns them
    in schema order.
    """
    by_field: Dict[str, FieldMapping] = {}
    for mapping in mappings:
        if schema.get_field(mapping.target_field_id) is None:
            continue
        by_field.setdefault(mapping.target_field_id, mapping)

    return [by_field.get(f.id, FieldMapping(target_field_id=f.id)) for f in schema.fields]


def find_mapping(mappings: List[FieldMapping], field_id: str) -> Optional[FieldMapping]:
    """Return the mapping for a target field, if present."""
    for mapping in mappings:
        if mapping.target_field_id == field_id:
            return mapping
    return None


@dataclass
class SavedConfiguration:
    """A named, persisted set of mapping sets for one business domain."""

    name: str
    group_id: str
    object_mappings: Dict[str, MappingSet] = field(default_factory=dict)
    id: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the registry wire shape."""
        return {
            "id": self.id,
            "name": self.name,
            "groupId": self.group_id,
            "objectMappings": {
                schema_id: [m.to_dict() for m in mappings]
                for schema_id, mappings in self.object_mappings.items()
            },
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SavedConfiguration":
        """Build from the registry wire shape."""
        created_at = data.get("createdAt")
        try:
            created = datetime.fromisoformat(created_at) if created_at else None
        except ValueError:
            created = None
        config = cls(
            id=str(data["id"]) if data.get("id") is not None else None,
            name=data.get("name", ""),
            group_id=data.get("groupId", ""),
            object_mappings={
                schema_id: [FieldMapping.from_dict(m) for m in mappings or []]
                for schema_id, mappings in (data.get("objectMappings") or {}).items()
            },
        )
        if created is not None:
            config.created_at = created
        return config
