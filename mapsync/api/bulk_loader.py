"""Bulk loading of materialized rows into target tables."""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

import requests

from config import RegistryApiConfig
from mapsync.schema.values import to_iso_utc

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Outcome of loading one table."""

    success: bool
    rows_affected: int = 0
    message: Optional[str] = None


class BulkLoader(ABC):
    """Loads flat rows into one physical table."""

    @abstractmethod
    def load(
        self,
        table_name: str,
        columns: Sequence[str],
        rows: Sequence[Dict[str, Any]],
    ) -> LoadResult:
        """Insert rows into ``table_name``. Failures are reported, not raised."""
        pass


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_iso_utc(value) or value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


class HttpBulkLoader(BulkLoader):
    """Posts rows to the backend's sync-data endpoint in batches."""

    def __init__(self, config: RegistryApiConfig, session: Optional[requests.Session] = None):
        """
        Initialize loader.

        Args:
            config: Backend configuration (base url, timeout, batch size)
            session: Optional requests session
        """
        self.config = config
        self.url = f"{config.base_url.rstrip('/')}/sync-data"
        self.batch_size = max(1, config.batch_size)
        self.session = session or requests.Session()

        if config.api_key:
            self.session.headers.update({"Authorization": f"Bearer {config.api_key}"})

    def load(
        self,
        table_name: str,
        columns: Sequence[str],
        rows: Sequence[Dict[str, Any]],
    ) -> LoadResult:
        if not rows:
            return LoadResult(success=True, rows_affected=0, message="No rows to load")

        total_affected = 0
        total_batches = (len(rows) + self.batch_size - 1) // self.batch_size

        for batch_idx, batch_start in enumerate(range(0, len(rows), self.batch_size)):
            batch = [
                {k: _jsonable(v) for k, v in row.items()}
                for row in rows[batch_start:batch_start + self.batch_size]
            ]
            batch_num = batch_idx + 1

            try:
                response = self.session.post(
                    self.url,
                    json={"tableName": table_name, "columns": list(columns), "rows": batch},
                    timeout=self.config.timeout,
                )
                result = response.json()
            except (requests.exceptions.RequestException, ValueError) as e:
                logger.error(f"Batch {batch_num}/{total_batches} for {table_name} failed: {e}")
                return LoadResult(success=False, rows_affected=total_affected, message=str(e))

            if not response.ok or not result.get("success", False):
                message = result.get("message") or result.get("error") or f"HTTP {response.status_code}"
                logger.error(f"Batch {batch_num}/{total_batches} for {table_name} rejected: {message}")
                return LoadResult(success=False, rows_affected=total_affected, message=message)

            affected = result.get("rowsAffected", len(batch))
            total_affected += affected
            logger.info(f"Batch {batch_num}/{total_batches} for {table_name}: {affected} rows")

        return LoadResult(success=True, rows_affected=total_affected)
