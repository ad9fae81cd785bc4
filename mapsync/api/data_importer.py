"""Multi-table sync of a mapping group into its target tables."""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from mapsync.api.bulk_loader import BulkLoader
from mapsync.builder.row_builder import RowMaterializer
from mapsync.mapper.mapping import MappingSet
from mapsync.schema.models import SchemaCatalog

logger = logging.getLogger(__name__)

SUCCESS = "success"
FAILED = "failed"
SKIPPED = "skipped"


@dataclass
class TableSyncResult:
    """Outcome for one table of a group sync."""

    schema_id: str
    table_name: str
    status: str
    rows_affected: int = 0
    message: Optional[str] = None


@dataclass
class SyncReport:
    """Aggregate outcome of a group sync. There is no rollback."""

    group_id: str
    results: List[TableSyncResult] = field(default_factory=list)

    def _count(self, status: str) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def succeeded(self) -> int:
        return self._count(SUCCESS)

    @property
    def failed(self) -> int:
        return self._count(FAILED)

    @property
    def skipped(self) -> int:
        return self._count(SKIPPED)


class GroupSynchronizer:
    """Loads every schema of a mapping group, one table at a time."""

    def __init__(
        self,
        catalog: SchemaCatalog,
        loader: BulkLoader,
        materializer: Optional[RowMaterializer] = None,
    ):
        self.catalog = catalog
        self.loader = loader
        self.materializer = materializer or RowMaterializer()

    def sync_group(
        self,
        group_id: str,
        mappings_by_schema: Dict[str, MappingSet],
        rows: Sequence[Dict[str, Any]],
    ) -> SyncReport:
        """
        Sync a group's tables sequentially.

        Tables with no mapped field are skipped before any load call. A failed
        table does not stop the remaining ones and earlier tables are not
        rolled back.

        Args:
            group_id: Mapping group to sync
            mappings_by_schema: {schema_id: mapping set}
            rows: Full source rows

        Returns:
            SyncReport with one result per schema in the group
        """
        report = SyncReport(group_id=group_id)

        for schema in self.catalog.schemas_in_group(group_id):
            mappings = mappings_by_schema.get(schema.id, [])

            if not self.materializer.has_mapped_fields(mappings):
                logger.info(f"Skipping {schema.name} - no mappings found")
                report.results.append(
                    TableSyncResult(schema.id, schema.table_name, SKIPPED, message="No mapped fields")
                )
                continue

            try:
                target_rows = self.materializer.materialize(schema, mappings, rows)
                result = self.loader.load(schema.table_name, schema.column_names, target_rows)
            except Exception as e:
                logger.error(f"Error syncing {schema.name}: {e}")
                report.results.append(
                    TableSyncResult(schema.id, schema.table_name, FAILED, message=str(e))
                )
                continue

            if result.success:
                logger.info(f"Synced {schema.name}: {result.rows_affected} rows")
                status = SUCCESS
            else:
                logger.error(f"Failed to sync {schema.name}: {result.message}")
                status = FAILED

            report.results.append(
                TableSyncResult(
                    schema.id,
                    schema.table_name,
                    status,
                    rows_affected=result.rows_affected,
                    message=result.message,
                )
            )

        logger.info(
            f"Group '{group_id}' sync: {report.succeeded} succeeded, "
            f"{report.failed} failed, {report.skipped} skipped"
        )
        return report
