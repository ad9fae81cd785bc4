"""Built-in target schema catalog."""
from pathlib import Path
from typing import Any, Dict, Optional

from mapsync.schema.models import SchemaCatalog


def _field(field_id, column_name, label, type_name, description, required=True):
    return {
        "id": field_id,
        "column_name": column_name,
        "label": label,
        "type": type_name,
        "required": required,
        "description": description,
    }


CATALOG_DATA: Dict[str, Any] = {
    "groups": [
        {
            "id": "workforce",
            "name": "Workforce Management",
            "objects": ["EMPLOYEE_MASTER", "ASSIGNMENT", "PAYROLL"],
        },
        {
            "id": "payables",
            "name": "Accounts Payable",
            "objects": ["INVOICE_HEADER", "INVOICE_LINES"],
        },
        {
            "id": "suppliers",
            "name": "Vendor Relations",
            "objects": ["SUPPLIER_HEADER", "SUPPLIER_SITES", "SUPPLIER_TAX"],
        },
    ],
    "schemas": [
        {
            "id": "EMPLOYEE_MASTER",
            "name": "Employee Master",
            "table_name": "hr_employee_master",
            "fields": [
                _field("fld_1", "emp_id", "Employee ID", "TEXT", "Primary key for employee"),
                _field("fld_2", "first_name", "First Name", "TEXT", "Legal first name"),
                _field("fld_3", "last_name", "Last Name", "TEXT", "Legal last name"),
                _field("fld_4", "email", "Work Email", "TEXT", "Business contact"),
                _field("fld_5", "hire_date", "Hire Date", "TIMESTAMP", "Onboarding date"),
            ],
        },
        {
            "id": "ASSIGNMENT",
            "name": "Assignment Records",
            "table_name": "hr_assignments",
            "fields": [
                _field("fld_6", "assignment_id", "Assignment ID", "TEXT", "Task unique identifier"),
                _field("fld_7", "emp_ref", "Employee Ref", "TEXT", "Foreign key to employee"),
                _field("fld_8", "project_code", "Project", "TEXT", "WBS Project Code"),
                _field("fld_9", "start_ts", "Start Timestamp", "TIMESTAMP", "Activation time"),
            ],
        },
        {
            "id": "PAYROLL",
            "name": "Payroll Data",
            "table_name": "fin_payroll_run",
            "fields": [
                _field("fld_10", "pay_run_id", "Payroll Run ID", "TEXT", "Unique payroll run"),
                _field("fld_11", "gross_amount", "Gross Pay", "NUMERIC", "Financial value"),
                _field("fld_12", "disbursement_date", "Pay Date", "TIMESTAMP", "Transfer date"),
            ],
        },
        {
            "id": "INVOICE_HEADER",
            "name": "Invoice Header",
            "table_name": "ap_invoice_headers",
            "fields": [
                _field("fld_13", "invoice_id", "Invoice Number", "TEXT", "Vendor invoice ref"),
                _field("fld_14", "invoice_ts", "Invoice Date", "TIMESTAMP", "Document date"),
                _field("fld_15", "amount_total", "Total Amount", "NUMERIC", "Total gross"),
            ],
        },
        {
            "id": "INVOICE_LINES",
            "name": "Invoice Lines",
            "table_name": "ap_invoice_lines",
            "fields": [
                _field("fld_16", "line_item_id", "Line ID", "TEXT", "Unique line identifier"),
                _field("fld_17", "parent_inv_id", "Parent Invoice", "TEXT", "Header reference"),
                _field("fld_18", "item_desc", "Description", "TEXT", "Itemized description"),
            ],
        },
        {
            "id": "SUPPLIER_HEADER",
            "name": "Supplier Header",
            "table_name": "pur_suppliers",
            "fields": [
                _field("fld_19", "vendor_id", "Supplier ID", "TEXT", "System vendor code"),
                _field("fld_20", "business_name", "Legal Name", "TEXT", "Entity name"),
            ],
        },
        {
            "id": "SUPPLIER_SITES",
            "name": "Supplier Sites",
            "table_name": "pur_vendor_sites",
            "fields": [
                _field("fld_21", "site_id", "Site ID", "TEXT", "Locational identifier"),
                _field("fld_22", "address_line", "Address", "TEXT", "Physical address"),
            ],
        },
        {
            "id": "SUPPLIER_TAX",
            "name": "Tax Information",
            "table_name": "pur_vendor_tax_profiles",
            "fields": [
                _field("fld_23", "tax_profile_id", "Tax Profile ID", "TEXT", "Tax record id"),
                _field("fld_24", "standard_rate", "Default Rate", "NUMERIC", "Standard tax %"),
            ],
        },
    ],
}

DEFAULT_CATALOG = SchemaCatalog.from_dict(CATALOG_DATA)

SAMPLE_CSV = """EmployeeNumber,FName,LName,Contact,Dept,DateJoined,Active
E001,John,Doe,john@example.com,Engineering,2023-01-15,Yes
E002,Jane,Smith,jane@example.com,Marketing,2022-11-01,Yes
E003,Bob,Johnson,bob@example.com,Sales,2023-05-20,No"""


def load_catalog(path: Optional[Path] = None) -> SchemaCatalog:
    """Return the catalog stored at ``path``, or the built-in one."""
    if path is None:
        return DEFAULT_CATALOG
    return SchemaCatalog.from_json_file(Path(path))
