"""JSON exporter."""
import json
from datetime import datetime
from pathlib import Path

from mapsync.mapper.mapping import SavedConfiguration
from mapsync.schema.models import SchemaCatalog


class JsonExporter:
    """Export a saved configuration with its schema context to JSON."""

    def export(
        self,
        output_file: Path,
        config: SavedConfiguration,
        catalog: SchemaCatalog,
    ) -> None:
        """Export to JSON file."""
        output_file = Path(output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "metadata": {
                "exported_at": datetime.now().isoformat(),
                "registry_id": config.id,
                "registry_name": config.name,
                "group_id": config.group_id,
                "tables": len(config.object_mappings),
            },
            "schemas": [
                catalog.get_schema(schema_id).to_dict()
                for schema_id in config.object_mappings
                if schema_id in catalog.schemas
            ],
            "registry": config.to_dict(),
        }

        with open(output_file, "w") as f:
            json.dump(data, f, indent=2, default=str)
