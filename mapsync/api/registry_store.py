"""Persistence of saved mapping configurations (registries)."""
import json
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from config import RegistryApiConfig
from mapsync.errors import PersistenceError
from mapsync.mapper.mapping import SavedConfiguration
from mapsync.schema.models import MappingGroup, SchemaCatalog, SchemaDefinition

logger = logging.getLogger(__name__)


@dataclass
class SaveResult:
    """Outcome of a save: the stored configuration carries its allocated id."""

    success: bool
    config: SavedConfiguration
    message: str = ""


class RegistryStore(ABC):
    """Persistence service for the schema catalog and saved configurations."""

    def __init__(self, catalog: SchemaCatalog):
        self.catalog = catalog

    def list_schema_domains(self) -> List[MappingGroup]:
        """Return all mapping groups."""
        return self.catalog.list_groups()

    def get_schema(self, schema_id: str) -> SchemaDefinition:
        """Return one schema definition."""
        return self.catalog.get_schema(schema_id)

    @abstractmethod
    def save_configuration(self, config: SavedConfiguration) -> SaveResult:
        """Upsert by id, else by name + group collision; allocates ids for new entries."""
        pass

    @abstractmethod
    def list_configurations(self, group_id: Optional[str] = None) -> List[SavedConfiguration]:
        """Return saved configurations, optionally for one group."""
        pass

    @abstractmethod
    def delete_configuration(self, config_id: str) -> bool:
        """Delete a configuration. Returns False when it does not exist."""
        pass

    def get_configuration(self, config_id: str) -> Optional[SavedConfiguration]:
        """Return one configuration by id."""
        for config in self.list_configurations():
            if config.id == str(config_id):
                return config
        return None


class JsonRegistryStore(RegistryStore):
    """Registry store backed by a local JSON file."""

    def __init__(self, path: Path, catalog: SchemaCatalog):
        super().__init__(catalog)
        self.path = Path(path)

    def save_configuration(self, config: SavedConfiguration) -> SaveResult:
        entries = self._read()

        index = self._find_index(entries, config)
        if index is None:
            stored = replace(config, id=str(uuid.uuid4()))
            entries.append(stored.to_dict())
        else:
            existing = SavedConfiguration.from_dict(entries[index])
            stored = replace(config, id=existing.id, created_at=existing.created_at)
            entries[index] = stored.to_dict()

        self._write(entries)
        logger.info(f"Saved registry '{stored.name}' ({stored.id}) to {self.path}")
        return SaveResult(success=True, config=stored)

    def list_configurations(self, group_id: Optional[str] = None) -> List[SavedConfiguration]:
        configs = [SavedConfiguration.from_dict(e) for e in self._read()]
        if group_id is not None:
            configs = [c for c in configs if c.group_id == group_id]
        return configs

    def delete_configuration(self, config_id: str) -> bool:
        entries = self._read()
        remaining = [e for e in entries if str(e.get("id")) != str(config_id)]
        if len(remaining) == len(entries):
            return False
        self._write(remaining)
        logger.info(f"Deleted registry {config_id}")
        return True

    @staticmethod
    def _find_index(entries: List[Dict[str, Any]], config: SavedConfiguration) -> Optional[int]:
        if config.id:
            for i, entry in enumerate(entries):
                if str(entry.get("id")) == config.id:
                    return i
        for i, entry in enumerate(entries):
            if entry.get("name") == config.name and entry.get("groupId") == config.group_id:
                return i
        return None

    def _read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot read registry file {self.path}: {e}")
        return data.get("registries", [])

    def _write(self, entries: List[Dict[str, Any]]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump({"registries": entries}, f, indent=2)
            tmp_path.replace(self.path)
        except OSError as e:
            raise PersistenceError(f"Cannot write registry file {self.path}: {e}")


class HttpRegistryStore(RegistryStore):
    """Registry store backed by the MapSync REST backend."""

    def __init__(
        self,
        config: RegistryApiConfig,
        catalog: SchemaCatalog,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(catalog)
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.session = session or requests.Session()

        if config.api_key:
            self.session.headers.update({"Authorization": f"Bearer {config.api_key}"})

    def save_configuration(self, config: SavedConfiguration) -> SaveResult:
        """
        Upsert a registry on the backend.

        The backend keys rows by the supplied id and does not allocate one, so
        the id is resolved here: the config's own id, else the id of a saved
        registry with the same name in the same group, else a fresh uuid4.
        """
        group = self.catalog.get_group(config.group_id)
        config = self._resolve_id(config)
        payload = {
            "registryId": config.id,
            "registryName": config.name,
            "groupId": config.group_id,
            "moduleName": group.name,
            "objectMappings": config.to_dict()["objectMappings"],
        }

        result = self._request("POST", "/registry", json=payload)
        if not result.get("success", True):
            raise PersistenceError(result.get("message") or "Registry save rejected")

        stored = replace(config, id=str(result.get("registryId") or config.id))
        logger.info(f"Saved registry '{stored.name}' ({stored.id}) via {self.base_url}")
        return SaveResult(success=True, config=stored, message=result.get("message", ""))

    def _resolve_id(self, config: SavedConfiguration) -> SavedConfiguration:
        if config.id:
            return config
        for existing in self.list_configurations(config.group_id):
            if existing.name == config.name:
                return replace(config, id=existing.id, created_at=existing.created_at)
        return replace(config, id=str(uuid.uuid4()))

    def list_configurations(self, group_id: Optional[str] = None) -> List[SavedConfiguration]:
        params = {"groupId": group_id} if group_id else None
        data = self._request("GET", "/registry", params=params)
        if not isinstance(data, list):
            raise PersistenceError("Registry backend returned an unexpected payload")

        configs = [SavedConfiguration.from_dict(item) for item in data]
        if group_id is not None:
            configs = [c for c in configs if c.group_id == group_id]
        return configs

    def delete_configuration(self, config_id: str) -> bool:
        url = f"{self.base_url}/registry/{config_id}"
        try:
            response = self.session.delete(url, timeout=self.config.timeout)
        except requests.exceptions.RequestException as e:
            raise PersistenceError(f"Delete failed: {e}")

        if response.status_code == 404:
            return False
        if not response.ok:
            raise PersistenceError(f"Delete failed with HTTP {response.status_code}")
        return True

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.config.timeout, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise PersistenceError(f"Registry request failed: {e}")
        except ValueError as e:
            raise PersistenceError(f"Invalid JSON from registry backend: {e}")
