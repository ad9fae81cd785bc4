"""Tests for registry stores, the bulk loader and group sync."""
import json
from datetime import datetime
from unittest.mock import Mock

import pytest
import requests

from config import RegistryApiConfig
from mapsync.api.bulk_loader import BulkLoader, HttpBulkLoader, LoadResult
from mapsync.api.data_importer import FAILED, SKIPPED, SUCCESS, GroupSynchronizer
from mapsync.api.registry_store import HttpRegistryStore, JsonRegistryStore
from mapsync.errors import ConfigurationError, PersistenceError
from mapsync.mapper.mapping import FieldMapping, SavedConfiguration, empty_mapping_set
from mapsync.transformer.steps import PrefixStep, TrimStep, UppercaseStep


def mock_response(payload, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"HTTP {status_code}")
    return response


@pytest.fixture
def sample_config(employee_schema):
    mappings = empty_mapping_set(employee_schema)
    mappings[0] = FieldMapping(
        "fld_1",
        "EmployeeNumber",
        (TrimStep("s1"), UppercaseStep("s2"), PrefixStep("s3", value="EMP-")),
    )
    return SavedConfiguration(
        name="HR Import",
        group_id="workforce",
        object_mappings={"EMPLOYEE_MASTER": mappings},
    )


class TestJsonRegistryStore:
    """Test the local JSON registry store."""

    @pytest.fixture
    def store(self, tmp_path, catalog):
        return JsonRegistryStore(tmp_path / "registries.json", catalog)

    def test_list_empty(self, store):
        """Test list empty."""
        assert store.list_configurations() == []

    def test_save_allocates_id(self, store, sample_config):
        """Test save allocates id."""
        result = store.save_configuration(sample_config)
        assert result.success
        assert result.config.id
        assert sample_config.id is None

    def test_save_then_reload_keeps_step_order(self, store, sample_config, tmp_path, catalog):
        """Test save then reload keeps step order."""
        saved = store.save_configuration(sample_config).config

        reloaded = JsonRegistryStore(tmp_path / "registries.json", catalog).get_configuration(saved.id)

        steps = reloaded.object_mappings["EMPLOYEE_MASTER"][0].transformations
        assert [s.id for s in steps] == ["s1", "s2", "s3"]
        assert steps[2] == PrefixStep("s3", value="EMP-")
        assert reloaded.name == "HR Import"
        assert reloaded.group_id == "workforce"

    def test_upsert_by_id(self, store, sample_config):
        """Test upsert by id."""
        saved = store.save_configuration(sample_config).config
        renamed = SavedConfiguration(name="Renamed", group_id="workforce", id=saved.id)

        store.save_configuration(renamed)

        configs = store.list_configurations()
        assert len(configs) == 1
        assert configs[0].name == "Renamed"
        assert configs[0].created_at == saved.created_at

    def test_upsert_by_name_and_group(self, store, sample_config):
        """Test upsert by name and group."""
        first = store.save_configuration(sample_config).config
        again = store.save_configuration(
            SavedConfiguration(name="HR Import", group_id="workforce")
        ).config
        other_group = store.save_configuration(
            SavedConfiguration(name="HR Import", group_id="payables")
        ).config

        assert again.id == first.id
        assert other_group.id != first.id
        assert len(store.list_configurations()) == 2
        assert [c.id for c in store.list_configurations("payables")] == [other_group.id]

    def test_delete(self, store, sample_config):
        """Test delete."""
        saved = store.save_configuration(sample_config).config
        assert store.delete_configuration(saved.id)
        assert not store.delete_configuration(saved.id)
        assert store.get_configuration(saved.id) is None

    def test_corrupt_file(self, tmp_path, catalog):
        """Test an unreadable registry file raises PersistenceError."""
        path = tmp_path / "registries.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError):
            JsonRegistryStore(path, catalog).list_configurations()

    def test_file_format(self, store, sample_config):
        """Test file format."""
        store.save_configuration(sample_config)
        data = json.loads(store.path.read_text(encoding="utf-8"))
        entry = data["registries"][0]
        assert entry["groupId"] == "workforce"
        assert entry["objectMappings"]["EMPLOYEE_MASTER"][0]["sourceHeader"] == "EmployeeNumber"

    def test_catalog_access(self, store):
        """Test catalog access."""
        assert [g.id for g in store.list_schema_domains()] == ["workforce", "payables", "suppliers"]
        assert store.get_schema("PAYROLL").table_name == "fin_payroll_run"


class TestHttpRegistryStore:
    """Test the REST registry store."""

    @pytest.fixture
    def session(self):
        session = Mock()
        session.headers = {}
        return session

    @pytest.fixture
    def store(self, session, catalog):
        config = RegistryApiConfig(base_url="http://backend/api/", api_key="secret", timeout=5)
        return HttpRegistryStore(config, catalog, session=session)

    def test_auth_header(self, store, session):
        """Test the api key is sent as a bearer token."""
        assert session.headers["Authorization"] == "Bearer secret"

    def test_save_posts_payload(self, store, session, sample_config):
        """Test save posts payload with a client-allocated id."""
        session.request.side_effect = [
            mock_response([]),
            mock_response({"success": True, "message": "Registry saved successfully"}),
        ]

        result = store.save_configuration(sample_config)

        method, url = session.request.call_args[0]
        payload = session.request.call_args[1]["json"]
        assert (method, url) == ("POST", "http://backend/api/registry")
        assert payload["registryName"] == "HR Import"
        assert payload["moduleName"] == "Workforce Management"
        assert payload["registryId"]
        assert result.config.id == payload["registryId"]
        assert result.message == "Registry saved successfully"
        assert "EMPLOYEE_MASTER" in payload["objectMappings"]

    def test_save_reuses_id_of_same_name(self, store, session, sample_config):
        """Test a save with the name of an existing registry updates it."""
        entry = sample_config.to_dict()
        entry["id"] = "r-7"
        session.request.side_effect = [mock_response([entry]), mock_response({"success": True})]

        result = store.save_configuration(sample_config)

        assert result.config.id == "r-7"
        assert session.request.call_args[1]["json"]["registryId"] == "r-7"

    def test_save_existing_id_skips_lookup(self, store, session, sample_config):
        """Test a registry that already has an id is posted directly."""
        sample_config.id = "r-9"
        session.request.return_value = mock_response({"success": True})

        result = store.save_configuration(sample_config)

        assert result.config.id == "r-9"
        assert session.request.call_count == 1

    def test_save_rejected(self, store, session, sample_config):
        """Test save rejected."""
        session.request.side_effect = [
            mock_response([]),
            mock_response({"success": False, "message": "Duplicate"}),
        ]
        with pytest.raises(PersistenceError, match="Duplicate"):
            store.save_configuration(sample_config)

    def test_save_unknown_group(self, store, sample_config):
        """Test save unknown group."""
        sample_config.group_id = "nope"
        with pytest.raises(ConfigurationError):
            store.save_configuration(sample_config)

    def test_transport_failure(self, store, session):
        """Test transport failure."""
        session.request.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(PersistenceError):
            store.list_configurations()

    def test_http_error(self, store, session):
        """Test an HTTP error status becomes PersistenceError."""
        session.request.return_value = mock_response({}, status_code=500)
        with pytest.raises(PersistenceError):
            store.list_configurations()

    def test_list_configurations(self, store, session, sample_config):
        """Test list configurations."""
        entry = sample_config.to_dict()
        entry["id"] = 7
        session.request.return_value = mock_response([entry])

        configs = store.list_configurations("workforce")

        assert [c.id for c in configs] == ["7"]
        assert session.request.call_args[1]["params"] == {"groupId": "workforce"}

    def test_delete(self, store, session):
        """Test delete."""
        session.delete.return_value = mock_response({}, status_code=204)
        assert store.delete_configuration("7")
        session.delete.assert_called_with("http://backend/api/registry/7", timeout=5)

        session.delete.return_value = mock_response({}, status_code=404)
        assert not store.delete_configuration("7")

        session.delete.return_value = mock_response({}, status_code=500)
        with pytest.raises(PersistenceError):
            store.delete_configuration("7")


class TestHttpBulkLoader:
    """Test batched loading."""

    @pytest.fixture
    def session(self):
        session = Mock()
        session.headers = {}
        return session

    def make_loader(self, session, batch_size=2):
        return HttpBulkLoader(RegistryApiConfig(base_url="http://backend/api", batch_size=batch_size), session=session)

    def test_batches(self, session):
        """Test rows are posted in batch_size chunks."""
        session.post.side_effect = lambda url, json, timeout: mock_response(
            {"success": True, "rowsAffected": len(json["rows"])}
        )
        rows = [{"emp_id": str(i)} for i in range(5)]

        result = self.make_loader(session).load("hr_employee_master", ["emp_id"], rows)

        assert result.success
        assert result.rows_affected == 5
        assert session.post.call_count == 3
        body = session.post.call_args_list[0][1]["json"]
        assert body["tableName"] == "hr_employee_master"
        assert body["columns"] == ["emp_id"]

    def test_datetimes_serialized(self, session):
        """Test datetimes serialized."""
        session.post.return_value = mock_response({"success": True})
        self.make_loader(session).load("t", ["d"], [{"d": datetime(2023, 1, 15)}])
        body = session.post.call_args[1]["json"]
        assert body["rows"] == [{"d": "2023-01-15T00:00:00.000Z"}]

    def test_empty_rows(self, session):
        """Test empty rows."""
        result = self.make_loader(session).load("t", ["a"], [])
        assert result.success
        session.post.assert_not_called()

    def test_rejected_batch_stops(self, session):
        """Test rejected batch stops."""
        session.post.side_effect = [
            mock_response({"success": True, "rowsAffected": 2}),
            mock_response({"success": False, "message": "constraint violation"}),
        ]
        result = self.make_loader(session).load("t", ["a"], [{"a": i} for i in range(6)])

        assert not result.success
        assert result.rows_affected == 2
        assert result.message == "constraint violation"
        assert session.post.call_count == 2

    def test_transport_failure(self, session):
        """Test transport failure."""
        session.post.side_effect = requests.exceptions.Timeout("slow")
        result = self.make_loader(session).load("t", ["a"], [{"a": 1}])
        assert not result.success
        assert "slow" in result.message


class RecordingLoader(BulkLoader):
    """Loader that records calls and fails for chosen tables."""

    def __init__(self, fail_tables=(), raise_tables=()):
        self.fail_tables = set(fail_tables)
        self.raise_tables = set(raise_tables)
        self.calls = []

    def load(self, table_name, columns, rows):
        self.calls.append((table_name, list(columns), list(rows)))
        if table_name in self.raise_tables:
            raise RuntimeError("connection reset")
        if table_name in self.fail_tables:
            return LoadResult(success=False, message="insert failed")
        return LoadResult(success=True, rows_affected=len(rows))


class TestGroupSynchronizer:
    """Test sequential multi-table sync."""

    @pytest.fixture
    def mappings(self, catalog):
        employee = empty_mapping_set(catalog.get_schema("EMPLOYEE_MASTER"))
        employee[1] = FieldMapping("fld_2", "FName")
        payroll = empty_mapping_set(catalog.get_schema("PAYROLL"))
        payroll[0] = FieldMapping("fld_10", "EmployeeNumber")
        return {
            "EMPLOYEE_MASTER": employee,
            "ASSIGNMENT": empty_mapping_set(catalog.get_schema("ASSIGNMENT")),
            "PAYROLL": payroll,
        }

    def test_skip_success_failure(self, catalog, demo_dataset, mappings):
        """Test 3 schemas: one skipped, one loaded, one failed."""
        loader = RecordingLoader(fail_tables={"fin_payroll_run"})

        report = GroupSynchronizer(catalog, loader).sync_group("workforce", mappings, demo_dataset.rows)

        assert [r.status for r in report.results] == [SUCCESS, SKIPPED, FAILED]
        assert (report.succeeded, report.failed, report.skipped) == (1, 1, 1)
        assert report.results[0].rows_affected == 3
        assert report.results[2].message == "insert failed"
        # Skipped table never reaches the loader
        assert [c[0] for c in loader.calls] == ["hr_employee_master", "fin_payroll_run"]

    def test_loader_exception_does_not_stop_sync(self, catalog, demo_dataset, mappings):
        """Test loader exception does not stop sync."""
        loader = RecordingLoader(raise_tables={"hr_employee_master"})

        report = GroupSynchronizer(catalog, loader).sync_group("workforce", mappings, demo_dataset.rows)

        assert report.results[0].status == FAILED
        assert "connection reset" in report.results[0].message
        assert report.results[2].status == SUCCESS

    def test_rows_are_materialized(self, catalog, demo_dataset, mappings):
        """Test rows are materialized."""
        loader = RecordingLoader()
        GroupSynchronizer(catalog, loader).sync_group("workforce", mappings, demo_dataset.rows)

        table, columns, rows = loader.calls[0]
        assert columns == ["emp_id", "first_name", "last_name", "email", "hire_date"]
        assert [r["first_name"] for r in rows] == ["John", "Jane", "Bob"]
        assert rows[0]["emp_id"] is None
