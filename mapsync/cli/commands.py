"""Command implementations for the MapSync CLI."""
import logging
from pathlib import Path
from typing import Optional, Sequence

import click
from colorama import Fore, Style

from config import AppConfig
from mapsync.api.bulk_loader import HttpBulkLoader
from mapsync.api.registry_store import HttpRegistryStore, JsonRegistryStore, RegistryStore
from mapsync.builder.row_builder import format_cell
from mapsync.errors import ConfigurationError, MapSyncError
from mapsync.exporter.csv_exporter import MappingReportExporter, file_stem
from mapsync.exporter.json_exporter import JsonExporter
from mapsync.mapper.semantic import SemanticMatcher, get_suggestion_provider
from mapsync.mapper.workspace import MappingWorkspace
from mapsync.parser.parser_factory import ParserFactory
from mapsync.schema.catalog import load_catalog
from mapsync.schema.models import SourceDataset
from mapsync.validator.data_validator import ValidationStatus

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    ValidationStatus.MATCH: Fore.GREEN,
    ValidationStatus.CAST_REQUIRED: Fore.YELLOW,
    ValidationStatus.PARSE_REQUIRED: Fore.CYAN,
    ValidationStatus.MISMATCH: Fore.RED,
}


def parse_step_option(option: str):
    """Parse ``FIELD_ID:TYPE[:VALUE[:REPLACE_WITH]]`` into its parts."""
    parts = option.split(":", 3)
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise ConfigurationError(f"Invalid step '{option}', expected FIELD_ID:TYPE[:VALUE[:REPLACE_WITH]]")
    config = {}
    if len(parts) > 2:
        config["value"] = parts[2]
    if len(parts) > 3:
        config["replace_with"] = parts[3]
    return parts[0], parts[1], config


class MappingCLI:
    """CLI front end over a MappingWorkspace."""

    def __init__(self, app_config: AppConfig, local: bool = False):
        """Initialize CLI."""
        self.config = app_config
        self.catalog = load_catalog(app_config.catalog_file)
        self.workspace = MappingWorkspace(self.catalog, replace_mode=app_config.replace_mode)
        self.store: RegistryStore = (
            JsonRegistryStore(Path(app_config.registry_file), self.catalog)
            if local
            else HttpRegistryStore(app_config.registry_api, self.catalog)
        )

    def print_header(self, title: str):
        """Print a section header."""
        click.echo(f"\n{Fore.CYAN}{'━' * 45}")
        click.echo(f"{Fore.CYAN}{title}")
        click.echo(f"{Fore.CYAN}{'━' * 45}{Style.RESET_ALL}\n")

    def load_source(self, file_path: Optional[str], demo: bool, sheet: Optional[str] = None) -> SourceDataset:
        """Load the source dataset from a file or the built-in demo."""
        if demo:
            dataset = ParserFactory.load_demo_dataset()
        elif file_path:
            dataset = ParserFactory.load_dataset(file_path, sheet)
        else:
            raise ConfigurationError("Provide a source FILE or --demo")
        self.workspace.load_dataset(dataset)
        return dataset

    def list_schemas(self):
        """Print every group, schema and field in the catalog."""
        self.print_header("Schema Catalog")
        for group in self.store.list_schema_domains():
            click.echo(f"{Fore.YELLOW}{group.name} ({group.id})")
            for schema in self.catalog.schemas_in_group(group.id):
                click.echo(f"  {Fore.GREEN}{schema.id:18s}{Style.RESET_ALL} → {schema.table_name}")
                for f in schema.fields:
                    flag = "*" if f.required else " "
                    click.echo(f"     {flag} {f.id:8s} {f.column_name:20s} {f.type.value:10s} {f.label}")

    def inspect(self, dataset: SourceDataset):
        """Print headers with their inferred types."""
        self.print_header(f"Source: {dataset.file_name}")
        click.echo(f"Rows: {len(dataset.rows)}")
        for header in dataset.headers:
            click.echo(f"  • {header:30s} {dataset.inferred_type(header).value}")

    def show_mappings(self, schema_id: str):
        """Print a schema's mappings with their validation badges."""
        schema = self.catalog.get_schema(schema_id)
        statuses = self.workspace.validate(schema_id)

        click.echo(f"{Fore.CYAN}{schema.name} → {schema.table_name}")
        for mapping in self.workspace.mappings_for(schema_id):
            target_field = schema.get_field(mapping.target_field_id)
            status = statuses[target_field.id]
            source = mapping.source_header or "—"
            steps = ", ".join(s.type for s in mapping.transformations)
            badge = ""
            if status != ValidationStatus.UNSET:
                badge = f"{STATUS_COLORS.get(status, '')}[{status.label}]{Style.RESET_ALL}"
            click.echo(f"  {target_field.column_name:20s} ← {source:20s} {badge} {steps}")
            if mapping.semantic_reasoning:
                click.echo(f"  {'':20s}   {Fore.WHITE}{mapping.semantic_reasoning}")

        for warning in self.workspace.validator.warnings(schema, self.workspace.mappings_for(schema_id), self.workspace.dataset):
            click.echo(f"  {Fore.YELLOW}⚠ {warning}")
        click.echo()

    def auto_map(self, group_id: str):
        """Run heuristic matching for a whole group."""
        result = self.workspace.auto_map_group(group_id)
        click.echo(f"{Fore.GREEN}✅ Auto-mapped {result.matched_fields} fields across {result.tables} tables.\n")
        for schema_id in result.mappings:
            self.show_mappings(schema_id)

    def suggest(self, schema_id: str, min_confidence: Optional[float] = None):
        """Run AI-assisted matching for one schema."""
        genai = self.config.genai
        provider = get_suggestion_provider(genai.use_real_genai, genai.api_key, genai.model)
        threshold = genai.min_confidence if min_confidence is None else min_confidence

        self.workspace.select_schema(schema_id)
        result = self.workspace.apply_suggestions(schema_id, SemanticMatcher(provider), threshold)

        if not result.applied and not result.held_back:
            click.echo(f"{Fore.YELLOW}No suggestions available; mappings unchanged.")
        else:
            click.echo(f"{Fore.GREEN}✅ Applied {len(result.applied)} suggestions.")
        for held in result.held_back:
            click.echo(
                f"{Fore.YELLOW}   Held back {held.target_field_id} ← {held.source_header} "
                f"(confidence {held.confidence:.2f} below {threshold:.2f})"
            )
        self.show_mappings(schema_id)

    def apply_steps(self, schema_id: str, steps: Sequence[str]):
        for option in steps:
            field_id, step_type, step_config = parse_step_option(option)
            self.workspace.add_step(schema_id, field_id, step_type, **step_config)

    def preview(self, schema_id: str, limit: int):
        """Print preview rows for one schema."""
        schema = self.catalog.get_schema(schema_id)
        rows = self.workspace.preview(schema_id, limit)

        self.print_header(f"Preview: {schema.table_name} ({len(rows)} rows)")
        click.echo(" | ".join(f"{f.column_name:18s}" for f in schema.fields))
        for row in rows:
            click.echo(" | ".join(f"{format_cell(row[f.id]):18s}" for f in schema.fields))

    def load_registry(self, config_id: str):
        config = self.store.get_configuration(config_id)
        if config is None:
            raise ConfigurationError(f"Registry not found: {config_id}")
        self.workspace.load_configuration(config)
        return config

    def save(self, name: str, group_id: str):
        saved = self.workspace.save(self.store, name, group_id)
        click.echo(f"{Fore.GREEN}✅ Registry \"{saved.name}\" saved (id {saved.id}).")

    def list_registries(self, group_id: Optional[str] = None):
        self.print_header("Saved Registries")
        configs = self.store.list_configurations(group_id)
        if not configs:
            click.echo(f"{Fore.YELLOW}No registries found")
        for config in configs:
            tables = len(config.object_mappings)
            click.echo(f"  {config.id}  {config.name:30s} {config.group_id:12s} {tables} tables")

    def delete(self, config_id: str):
        if self.workspace.delete_configuration(self.store, config_id):
            click.echo(f"{Fore.GREEN}✅ Registry entry purged successfully.")
        else:
            click.echo(f"{Fore.YELLOW}Registry not found: {config_id}")

    def export(self, config_id: str, output_format: str, output_dir: Optional[str]):
        config = self.load_registry(config_id)
        out_dir = Path(output_dir or self.config.output_dir)
        if output_format == "json":
            output_file = out_dir / f"{file_stem(config.name)}_registry.json"
            JsonExporter().export(output_file, config, self.catalog)
        else:
            output_file = MappingReportExporter().export(out_dir, config, self.catalog)
        click.echo(f"{Fore.GREEN}✅ Exported to {output_file}")

    def sync(self, group_id: Optional[str] = None):
        """Load every table of the active group into the target database."""
        loader = HttpBulkLoader(self.config.registry_api)
        report = self.workspace.sync_group(loader, group_id)

        self.print_header("Sync Summary")
        for result in report.results:
            icon = {"success": "✅", "failed": "❌", "skipped": "⏭"}[result.status]
            detail = f"{result.rows_affected} rows" if result.status == "success" else (result.message or "")
            click.echo(f"{icon} {result.table_name:30s} {detail}")

        color = Fore.GREEN if report.failed == 0 else Fore.RED
        click.echo(
            f"\n{color}{report.succeeded} succeeded, {report.failed} failed, "
            f"{report.skipped} skipped"
        )
        return report


def run_safely(action) -> bool:
    """Run a CLI action, reporting MapSync errors instead of raising."""
    try:
        action()
        return True
    except MapSyncError as e:
        click.echo(f"{Fore.RED}❌ {e}")
        return False
