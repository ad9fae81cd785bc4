"""
Mapping workspace - the state of one mapping session.

Holds the loaded dataset, one mapping set per schema, and which registry (if
any) the session is editing. Operations either complete or raise before
mutating anything.
"""
import logging
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional

from mapsync.api.bulk_loader import BulkLoader
from mapsync.api.data_importer import GroupSynchronizer, SyncReport
from mapsync.api.registry_store import RegistryStore
from mapsync.builder.row_builder import RowMaterializer
from mapsync.errors import ConfigurationError, PersistenceError
from mapsync.mapper.heuristic import GroupMatchResult, HeuristicMatcher
from mapsync.mapper.mapping import (
    FieldMapping,
    MappingSet,
    SavedConfiguration,
    empty_mapping_set,
    normalize_mapping_set,
)
from mapsync.mapper.semantic import MergeResult, SemanticMatcher, merge_suggestions
from mapsync.schema.models import SchemaCatalog, SchemaDefinition, SourceDataset
from mapsync.transformer.steps import ReplaceStep, TransformationStep, new_step, parse_mode
from mapsync.validator.data_validator import DataValidator, ValidationStatus

logger = logging.getLogger(__name__)


class MappingWorkspace:
    """Single-session mapping state and the operations on it."""

    def __init__(self, catalog: SchemaCatalog, replace_mode: str = "literal"):
        self.catalog = catalog
        self.replace_mode = parse_mode(replace_mode)
        self.dataset: Optional[SourceDataset] = None
        self.active_group_id: Optional[str] = None
        self.active_config_id: Optional[str] = None
        self.config_name: str = ""
        self.modified = False

        self._mappings: Dict[str, MappingSet] = {}
        self.heuristic = HeuristicMatcher()
        self.validator = DataValidator()
        self.materializer = RowMaterializer()

    # Dataset and selection

    def load_dataset(self, dataset: SourceDataset) -> None:
        """Replace the current dataset wholesale."""
        self.dataset = dataset
        logger.info(f"Workspace dataset: {dataset.file_name} ({len(dataset.rows)} rows)")

    def select_schema(self, schema_id: str) -> SchemaDefinition:
        """Switch to a schema; moving to another group detaches the active registry."""
        schema = self.catalog.get_schema(schema_id)
        group = self.catalog.group_for_schema(schema_id)
        group_id = group.id if group else None

        if group_id != self.active_group_id:
            self.active_config_id = None
            self.config_name = ""
            self.modified = False
            self.active_group_id = group_id

        self._mappings.setdefault(schema_id, empty_mapping_set(schema))
        return schema

    def mappings_for(self, schema_id: str) -> MappingSet:
        """Return a copy of a schema's mapping set (placeholders when untouched)."""
        schema = self.catalog.get_schema(schema_id)
        return list(self._mappings.get(schema_id) or empty_mapping_set(schema))

    def group_mappings(self, group_id: str) -> Dict[str, MappingSet]:
        """Mapping sets of every schema in a group."""
        return {s.id: self.mappings_for(s.id) for s in self.catalog.schemas_in_group(group_id)}

    # Field-level edits

    def set_source_header(self, schema_id: str, field_id: str, header: str) -> FieldMapping:
        """Manually link a target field to a source header."""
        self._require_header(header)
        return self._update(schema_id, field_id, lambda m: m.with_header(header))

    def clear_source_header(self, schema_id: str, field_id: str) -> FieldMapping:
        return self._update(schema_id, field_id, lambda m: m.with_header(None))

    def add_step(self, schema_id: str, field_id: str, step_type: str, **config: Any) -> TransformationStep:
        """Append a transformation step to a field's pipeline."""
        if step_type == ReplaceStep.type and config.get("mode") is None:
            config["mode"] = self.replace_mode

        existing = self._get(schema_id, field_id).transformations
        step = new_step(step_type, existing, **config)
        self._update(schema_id, field_id, lambda m: m.with_steps(list(m.transformations) + [step]))
        return step

    def remove_step(self, schema_id: str, field_id: str, step_id: str) -> FieldMapping:
        mapping = self._get(schema_id, field_id)
        self._find_step(mapping, step_id)
        return self._update(
            schema_id,
            field_id,
            lambda m: m.with_steps(s for s in m.transformations if s.id != step_id),
        )

    def update_step(self, schema_id: str, field_id: str, step_id: str, **changes: Any) -> FieldMapping:
        """Change the options of one step in place (its position is kept)."""
        mapping = self._get(schema_id, field_id)
        current = self._find_step(mapping, step_id)
        if "id" in changes:
            raise ConfigurationError("Step ids cannot be changed")
        if "mode" in changes:
            changes["mode"] = parse_mode(changes["mode"])
        try:
            updated = replace(current, **changes)
        except TypeError as e:
            raise ConfigurationError(f"Invalid options for '{current.type}' step: {e}")

        return self._update(
            schema_id,
            field_id,
            lambda m: m.with_steps(updated if s.id == step_id else s for s in m.transformations),
        )

    # Matching

    def auto_map_group(self, group_id: str) -> GroupMatchResult:
        """Replace every mapping set of a group with heuristic matches."""
        dataset = self._require_dataset()
        result = self.heuristic.auto_map_group(self.catalog, group_id, dataset.headers)
        self._mappings.update(result.mappings)
        self.active_group_id = group_id
        self.modified = True
        return result

    def apply_suggestions(
        self,
        schema_id: str,
        matcher: SemanticMatcher,
        min_confidence: float = 0.0,
    ) -> MergeResult:
        """Ask the semantic matcher and merge its suggestions into a schema."""
        dataset = self._require_dataset()
        schema = self.catalog.get_schema(schema_id)
        current = self.mappings_for(schema_id)

        suggestions = matcher.suggest(dataset.headers, schema)
        if not suggestions:
            return MergeResult(mappings=current)

        result = merge_suggestions(schema, current, suggestions, min_confidence)
        self._mappings[schema_id] = result.mappings
        if result.applied:
            self.modified = True
        return result

    # Registry lifecycle

    def new_registry(self, group_id: str) -> None:
        """Start a fresh, unsaved registry for a group."""
        for schema in self.catalog.schemas_in_group(group_id):
            self._mappings[schema.id] = empty_mapping_set(schema)
        self.active_group_id = group_id
        self.active_config_id = None
        self.config_name = ""
        self.modified = False

    def save(self, store: RegistryStore, name: str, group_id: Optional[str] = None) -> SavedConfiguration:
        """
        Save the group's mapping sets as a named registry.

        Raises:
            ConfigurationError: Blank name or no group
            PersistenceError: Store failure (workspace state is unchanged)
        """
        if not name or not name.strip():
            raise ConfigurationError("Please enter a registry name.")
        group_id = group_id or self.active_group_id
        if not group_id:
            raise ConfigurationError("No mapping group selected")
        self.catalog.get_group(group_id)

        config = SavedConfiguration(
            id=self.active_config_id if group_id == self.active_group_id else None,
            name=name.strip(),
            group_id=group_id,
            object_mappings=self.group_mappings(group_id),
        )

        result = store.save_configuration(config)
        if not result.success:
            raise PersistenceError(result.message or "Registry save failed")

        self.active_group_id = group_id
        self.active_config_id = result.config.id
        self.config_name = result.config.name
        self.modified = False
        return result.config

    def load_configuration(self, config: SavedConfiguration) -> None:
        """Load a saved registry's mapping sets into the workspace."""
        loaded: Dict[str, MappingSet] = {}
        for schema_id, mappings in config.object_mappings.items():
            if schema_id not in self.catalog.schemas:
                logger.warning(f"Registry {config.id} references unknown schema {schema_id}, ignored")
                continue
            loaded[schema_id] = normalize_mapping_set(self.catalog.get_schema(schema_id), mappings)

        if self.dataset is not None:
            for schema_id, mappings in loaded.items():
                for mapping in mappings:
                    if mapping.source_header and not self.dataset.has_header(mapping.source_header):
                        logger.warning(
                            f"Registry {config.id} maps {schema_id}.{mapping.target_field_id} "
                            f"from missing header {mapping.source_header!r}"
                        )

        self._mappings.update(loaded)
        self.active_group_id = config.group_id
        self.active_config_id = config.id
        self.config_name = config.name
        self.modified = False

    def delete_configuration(self, store: RegistryStore, config_id: str) -> bool:
        deleted = store.delete_configuration(config_id)
        if deleted and self.active_config_id == str(config_id):
            self.active_config_id = None
            self.config_name = ""
        return deleted

    # Output

    def preview(self, schema_id: str, limit: Optional[int] = 8) -> List[Dict[str, Any]]:
        dataset = self._require_dataset()
        schema = self.catalog.get_schema(schema_id)
        return self.materializer.preview(schema, self.mappings_for(schema_id), dataset.rows, limit)

    def validate(self, schema_id: str) -> Dict[str, ValidationStatus]:
        dataset = self._require_dataset()
        schema = self.catalog.get_schema(schema_id)
        return self.validator.validate(schema, self.mappings_for(schema_id), dataset)

    def sync_group(self, loader: BulkLoader, group_id: Optional[str] = None) -> SyncReport:
        """Materialize and load every table of a group, sequentially."""
        dataset = self._require_dataset()
        group_id = group_id or self.active_group_id
        if not group_id:
            raise ConfigurationError("No mapping group selected")

        synchronizer = GroupSynchronizer(self.catalog, loader, self.materializer)
        return synchronizer.sync_group(group_id, self.group_mappings(group_id), dataset.rows)

    # Helpers

    def _require_dataset(self) -> SourceDataset:
        if self.dataset is None:
            raise ConfigurationError("No source dataset loaded")
        return self.dataset

    def _require_header(self, header: str) -> None:
        dataset = self._require_dataset()
        if not dataset.has_header(header):
            raise ConfigurationError(f"Unknown source header: {header}")

    def _get(self, schema_id: str, field_id: str) -> FieldMapping:
        schema = self.catalog.get_schema(schema_id)
        if schema.get_field(field_id) is None:
            raise ConfigurationError(f"Schema {schema_id} has no field {field_id}")
        for mapping in self.mappings_for(schema_id):
            if mapping.target_field_id == field_id:
                return mapping
        return FieldMapping(target_field_id=field_id)

    @staticmethod
    def _find_step(mapping: FieldMapping, step_id: str) -> TransformationStep:
        for step in mapping.transformations:
            if step.id == step_id:
                return step
        raise ConfigurationError(f"No step {step_id} on field {mapping.target_field_id}")

    def _update(
        self,
        schema_id: str,
        field_id: str,
        change: Callable[[FieldMapping], FieldMapping],
    ) -> FieldMapping:
        """Apply ``change`` to one field mapping and store the new set."""
        current = self._get(schema_id, field_id)
        updated = change(current)
        schema = self.catalog.get_schema(schema_id)
        mappings = [
            updated if m.target_field_id == field_id else m
            for m in normalize_mapping_set(schema, self.mappings_for(schema_id))
        ]
        self._mappings[schema_id] = mappings
        self.modified = True
        return updated
