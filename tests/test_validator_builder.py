"""Tests for type validation and row materialization."""
from datetime import datetime

import pytest

from mapsync.builder.row_builder import NULL_MARKER, RowMaterializer, format_cell
from mapsync.mapper.mapping import FieldMapping, empty_mapping_set, normalize_mapping_set
from mapsync.transformer.steps import ConstantStep, PrefixStep, ToDateStep, TrimStep
from mapsync.validator.data_validator import DataValidator, ValidationStatus


@pytest.fixture
def validator():
    return DataValidator()


class TestDataValidator:
    """Test source/target type classification."""

    def test_unmapped_is_unset(self, validator, employee_schema, demo_dataset):
        """Test unmapped is unset."""
        target_field = employee_schema.get_field("fld_2")
        assert validator.classify(target_field, None, demo_dataset) == ValidationStatus.UNSET
        assert validator.classify(target_field, FieldMapping("fld_2"), demo_dataset) == ValidationStatus.UNSET

    def test_match(self, validator, employee_schema, demo_dataset):
        """Test equal types match."""
        target_field = employee_schema.get_field("fld_5")
        status = validator.classify(target_field, FieldMapping("fld_5", "DateJoined"), demo_dataset)
        assert status == ValidationStatus.MATCH
        assert status.label == "Schema Match"

    def test_parse_required(self, validator, employee_schema, demo_dataset):
        """Test parse required."""
        target_field = employee_schema.get_field("fld_5")
        status = validator.classify(target_field, FieldMapping("fld_5", "FName"), demo_dataset)
        assert status == ValidationStatus.PARSE_REQUIRED

    def test_cast_required(self, validator, catalog, demo_dataset):
        """Test cast required."""
        target_field = catalog.get_schema("PAYROLL").get_field("fld_11")
        status = validator.classify(target_field, FieldMapping("fld_11", "FName"), demo_dataset)
        assert status == ValidationStatus.CAST_REQUIRED
        assert "To Number" in status.reason

    def test_mismatch(self, validator, catalog, demo_dataset):
        """Test BOOLEAN into NUMERIC is a mismatch."""
        target_field = catalog.get_schema("PAYROLL").get_field("fld_11")
        status = validator.classify(target_field, FieldMapping("fld_11", "Active"), demo_dataset)
        assert status == ValidationStatus.MISMATCH

    def test_missing_header_is_mismatch(self, validator, employee_schema, demo_dataset):
        """Test a header absent from the dataset is a mismatch, even for TEXT targets."""
        target_field = employee_schema.get_field("fld_2")
        status = validator.classify(target_field, FieldMapping("fld_2", "Nope"), demo_dataset)
        assert status == ValidationStatus.MISMATCH

    def test_validate_and_warnings(self, validator, employee_schema, demo_dataset):
        """Test validate and warnings."""
        mappings = normalize_mapping_set(
            employee_schema,
            [FieldMapping("fld_2", "FName"), FieldMapping("fld_5", "Active")],
        )

        statuses = validator.validate(employee_schema, mappings, demo_dataset)
        assert statuses["fld_2"] == ValidationStatus.MATCH
        assert statuses["fld_5"] == ValidationStatus.MISMATCH
        assert statuses["fld_1"] == ValidationStatus.UNSET

        warnings = validator.warnings(employee_schema, mappings, demo_dataset)
        assert "Required field hr_employee_master.emp_id is unmapped" in warnings
        assert any("hire_date" in w and "Inconsistent Types" in w for w in warnings)


class TestRowMaterializer:
    """Test target row construction."""

    @pytest.fixture
    def materializer(self):
        return RowMaterializer()

    def test_empty_pipeline_round_trips_values(self, materializer, employee_schema, demo_dataset):
        """Test empty pipeline round trips values."""
        mappings = normalize_mapping_set(employee_schema, [FieldMapping("fld_2", "FName")])
        rows = materializer.preview(employee_schema, mappings, demo_dataset.rows)

        assert [r["fld_2"] for r in rows] == [r["FName"] for r in demo_dataset.rows]
        assert all(r["fld_1"] is None for r in rows)

    def test_unmapped_field_runs_pipeline_on_none(self, materializer, employee_schema):
        """Test unmapped field runs pipeline on none."""
        mappings = normalize_mapping_set(
            employee_schema,
            [FieldMapping("fld_1", None, (ConstantStep("s1", value="E-000"),))],
        )
        row = materializer.build_row(employee_schema, mappings, {"FName": "John"})
        assert row["fld_1"] == "E-000"

    def test_pipeline_applied(self, materializer, employee_schema):
        """Test pipeline applied."""
        mappings = normalize_mapping_set(
            employee_schema,
            [
                FieldMapping("fld_1", "EmployeeNumber", (TrimStep("s1"), PrefixStep("s2", value="EMP-"))),
                FieldMapping("fld_5", "DateJoined", (ToDateStep("s3"),)),
            ],
        )
        row = materializer.build_row(
            employee_schema, mappings, {"EmployeeNumber": " 7 ", "DateJoined": "2023-01-15"}
        )
        assert row["fld_1"] == "EMP-7"
        assert row["fld_5"] == "2023-01-15T00:00:00.000Z"

    def test_preview_limit(self, materializer, employee_schema, demo_dataset):
        """Test preview limit."""
        mappings = empty_mapping_set(employee_schema)
        assert len(materializer.preview(employee_schema, mappings, demo_dataset.rows, limit=2)) == 2
        assert len(materializer.preview(employee_schema, mappings, demo_dataset.rows, limit=None)) == 3

    def test_materialize_keys_by_column_name(self, materializer, employee_schema, demo_dataset):
        """Test materialize keys by column name."""
        mappings = normalize_mapping_set(employee_schema, [FieldMapping("fld_3", "LName")])
        rows = materializer.materialize(employee_schema, mappings, demo_dataset.rows)

        assert list(rows[0]) == ["emp_id", "first_name", "last_name", "email", "hire_date"]
        assert rows[0]["last_name"] == "Doe"

    def test_has_mapped_fields(self, employee_schema):
        """Test has mapped fields."""
        assert not RowMaterializer.has_mapped_fields(empty_mapping_set(employee_schema))
        assert RowMaterializer.has_mapped_fields([FieldMapping("fld_1", "EmployeeNumber")])


class TestFormatCell:
    """Test preview cell rendering."""

    def test_null_and_empty_are_distinct(self):
        """Test null and empty are distinct."""
        assert format_cell(None) == NULL_MARKER
        assert format_cell("") == '""'
        assert format_cell(None) != format_cell("")

    def test_other_values(self):
        """Test other values."""
        assert format_cell(12) == "12"
        assert format_cell(datetime(2023, 1, 1)) == "2023-01-01 00:00:00"
