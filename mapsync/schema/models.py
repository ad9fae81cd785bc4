"""Models for target schemas and source datasets."""
import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from mapsync.errors import ConfigurationError
from mapsync.schema.values import Scalar


class SemanticType(str, Enum):
    """Logical type of a source column or target field."""

    TEXT = "TEXT"
    NUMERIC = "NUMERIC"
    TIMESTAMP = "TIMESTAMP"
    BOOLEAN = "BOOLEAN"

    @classmethod
    def parse(cls, value: str) -> "SemanticType":
        """Parse a type name, accepting ``VARCHAR`` as an alias for TEXT."""
        name = str(value).strip().upper()
        if name == "VARCHAR":
            return cls.TEXT
        try:
            return cls(name)
        except ValueError:
            raise ConfigurationError(f"Unknown field type: {value}")


@dataclass(frozen=True)
class TargetField:
    """One column definition in a destination schema."""

    id: str
    column_name: str
    label: str
    type: SemanticType
    required: bool = False
    description: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TargetField":
        """Build from a catalog entry."""
        return cls(
            id=data["id"],
            column_name=data["column_name"],
            label=data.get("label", data["column_name"]),
            type=SemanticType.parse(data.get("type", "TEXT")),
            required=bool(data.get("required", False)),
            description=data.get("description", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "column_name": self.column_name,
            "label": self.label,
            "type": self.type.value,
            "required": self.required,
            "description": self.description,
        }


@dataclass(frozen=True)
class SchemaDefinition:
    """Ordered set of target fields for one destination table."""

    id: str
    name: str
    table_name: str
    fields: Tuple[TargetField, ...] = ()

    def get_field(self, field_id: str) -> Optional[TargetField]:
        """Return field by id."""
        for target_field in self.fields:
            if target_field.id == field_id:
                return target_field
        return None

    @property
    def column_names(self) -> List[str]:
        return [f.column_name for f in self.fields]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchemaDefinition":
        """Build from a catalog entry."""
        fields = tuple(TargetField.from_dict(f) for f in data.get("fields", []))
        ids = [f.id for f in fields]
        if len(ids) != len(set(ids)):
            raise ConfigurationError(f"Duplicate field ids in schema {data['id']}")
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            table_name=data["table_name"],
            fields=fields,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "table_name": self.table_name,
            "fields": [f.to_dict() for f in self.fields],
        }


@dataclass(frozen=True)
class MappingGroup:
    """Named cluster of related schemas (a business domain)."""

    id: str
    name: str
    schema_ids: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"id": self.id, "name": self.name, "objects": list(self.schema_ids)}


class SchemaCatalog:
    """
    Read-only catalog of schemas and mapping groups.

    Loaded once at startup and passed to whatever needs it; nothing mutates
    it afterwards.
    """

    def __init__(
        self,
        schemas: Sequence[SchemaDefinition],
        groups: Sequence[MappingGroup],
    ):
        self._schemas: Mapping[str, SchemaDefinition] = MappingProxyType(
            {s.id: s for s in schemas}
        )
        self._groups: Tuple[MappingGroup, ...] = tuple(groups)

        for group in self._groups:
            for schema_id in group.schema_ids:
                if schema_id not in self._schemas:
                    raise ConfigurationError(
                        f"Group '{group.id}' references unknown schema '{schema_id}'"
                    )

    @property
    def schemas(self) -> Mapping[str, SchemaDefinition]:
        return self._schemas

    def list_groups(self) -> List[MappingGroup]:
        """Return all mapping groups in catalog order."""
        return list(self._groups)

    def get_group(self, group_id: str) -> MappingGroup:
        """Return group by id."""
        for group in self._groups:
            if group.id == group_id:
                return group
        raise ConfigurationError(f"Unknown mapping group: {group_id}")

    def get_schema(self, schema_id: str) -> SchemaDefinition:
        """Return schema by id."""
        try:
            return self._schemas[schema_id]
        except KeyError:
            raise ConfigurationError(f"Unknown schema: {schema_id}")

    def schemas_in_group(self, group_id: str) -> List[SchemaDefinition]:
        """Return the group's schemas in declared order."""
        return [self._schemas[s] for s in self.get_group(group_id).schema_ids]

    def group_for_schema(self, schema_id: str) -> Optional[MappingGroup]:
        """Return the group that contains a schema, if any."""
        for group in self._groups:
            if schema_id in group.schema_ids:
                return group
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchemaCatalog":
        """
        Build a catalog from a plain dictionary.

        Expected shape::

            {"schemas": [{"id", "name", "table_name", "fields": [...]}],
             "groups": [{"id", "name", "objects": [schema ids]}]}
        """
        try:
            schemas = [SchemaDefinition.from_dict(s) for s in data.get("schemas", [])]
            groups = [
                MappingGroup(
                    id=g["id"],
                    name=g.get("name", g["id"]),
                    schema_ids=tuple(g.get("objects", [])),
                )
                for g in data.get("groups", [])
            ]
        except (KeyError, TypeError) as e:
            raise ConfigurationError(f"Malformed catalog definition: {e}")
        return cls(schemas, groups)

    @classmethod
    def from_json_file(cls, path: Path) -> "SchemaCatalog":
        """Load a catalog from a JSON file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read catalog file {path}: {e}")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "schemas": [s.to_dict() for s in self._schemas.values()],
            "groups": [g.to_dict() for g in self._groups],
        }


@dataclass(frozen=True)
class SourceDataset:
    """Parsed upload: ordered headers, rows and inferred column types."""

    headers: Tuple[str, ...]
    rows: Tuple[Dict[str, Scalar], ...]
    inferred_types: Mapping[str, SemanticType] = field(default_factory=dict)
    file_name: str = ""

    @classmethod
    def from_table(
        cls,
        headers: Sequence[str],
        rows: Sequence[Dict[str, Scalar]],
        file_name: str = "",
    ) -> "SourceDataset":
        """Build a dataset and infer the type of every column."""
        from mapsync.introspection.type_inferencer import TypeInferencer

        inferred = TypeInferencer().infer_columns(headers, rows)
        return cls(
            headers=tuple(headers),
            rows=tuple(dict(r) for r in rows),
            inferred_types=MappingProxyType(inferred),
            file_name=file_name,
        )

    def has_header(self, header: str) -> bool:
        return header in self.headers

    def column_values(self, header: str) -> List[Scalar]:
        """Return the raw values of one column."""
        return [row.get(header) for row in self.rows]

    def inferred_type(self, header: str) -> SemanticType:
        return self.inferred_types.get(header, SemanticType.TEXT)
