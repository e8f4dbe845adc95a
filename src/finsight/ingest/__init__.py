"""Transaction ingestion module."""
from .csv_importer import ImportResult, import_from_csv, parse_row

__all__ = ["ImportResult", "import_from_csv", "parse_row"]
