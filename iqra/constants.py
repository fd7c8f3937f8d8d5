from __future__ import annotations

from pathlib import Path

APP_NAME = "Iqra Institute Records"

WORKSPACE_ROOT = Path(__file__).resolve().parents[1]
DATA_JSON_PATH = WORKSPACE_ROOT / "iqra_data.json"
SETTINGS_JSON_PATH = WORKSPACE_ROOT / "settings.json"
ERROR_LOG_PATH = WORKSPACE_ROOT / "error_log.txt"
APP_LOG_PATH = WORKSPACE_ROOT / "iqra.log"
BACKUP_DIR = WORKSPACE_ROOT / "backups"
EXPORT_XLSX_PATH = WORKSPACE_ROOT / "iqra_export.xlsx"

BACKUP_PREFIX = "iqra_backup_"

STUDENTS = "students"
FEES = "fees"
EXPENSES = "expenses"
STAFF = "staff"
COLLECTIONS = (STUDENTS, FEES, EXPENSES, STAFF)

SCHEMA_VERSION_KEY = "schema_version"
SCHEMA_VERSION = 2

DEFAULT_STUDENT_STATUS = "Active"
UNKNOWN_STUDENT = "Unknown Student"
FEE_CATEGORY = "Fee Collection"

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
