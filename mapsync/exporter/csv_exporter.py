"""Delimited-text mapping report."""
import csv
import re
from datetime import datetime
from io import StringIO
from pathlib import Path
from typing import Optional

from mapsync.errors import ConfigurationError
from mapsync.mapper.mapping import SavedConfiguration
from mapsync.schema.models import SchemaCatalog
from mapsync.transformer.registry import TransformerRegistry

REPORT_COLUMNS = ["Target Table", "Target Column", "Source Header", "Transformations", "Requirement"]


def file_stem(name: str) -> str:
    """Registry name as a safe file stem: whitespace to ``_``, word characters and ``-`` kept."""
    stem = re.sub(r"[^\w-]", "", re.sub(r"\s+", "_", name.strip()))
    return stem or "registry"


class MappingReportExporter:
    """Export a saved configuration as a CSV mapping report."""

    def render(
        self,
        config: SavedConfiguration,
        catalog: SchemaCatalog,
        generated_at: Optional[datetime] = None,
    ) -> str:
        """Render the report text, one blank-line-separated block per schema."""
        generated_at = generated_at or datetime.now()
        try:
            domain = catalog.get_group(config.group_id).name
        except ConfigurationError:
            domain = "Unknown"

        out = StringIO()
        out.write("MAPSYNC INTEGRATION REPORT\n")
        out.write(f"Registry Name: {config.name}\n")
        out.write(f"Business Domain: {domain}\n")
        out.write(f"Generated At: {generated_at:%Y-%m-%d %H:%M:%S}\n\n")
        out.write(",".join(REPORT_COLUMNS) + "\n")

        writer = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator="\n")

        for schema_id, mappings in config.object_mappings.items():
            if schema_id not in catalog.schemas:
                continue
            schema = catalog.get_schema(schema_id)

            for mapping in mappings:
                target_field = schema.get_field(mapping.target_field_id)
                if target_field is None:
                    continue

                steps = " | ".join(TransformerRegistry.describe(s) for s in mapping.transformations)
                writer.writerow([
                    schema.table_name,
                    target_field.column_name,
                    mapping.source_header or "UNMAPPED",
                    steps or "NONE",
                    "MANDATORY" if target_field.required else "OPTIONAL",
                ])
            out.write("\n")

        return out.getvalue()

    def export(
        self,
        output_dir: Path,
        config: SavedConfiguration,
        catalog: SchemaCatalog,
    ) -> Path:
        """Write the report to ``<name>_mapping_report.csv`` and return its path."""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        output_file = output_dir / f"{file_stem(config.name)}_mapping_report.csv"
        output_file.write_text(self.render(config, catalog), encoding="utf-8")
        return output_file
