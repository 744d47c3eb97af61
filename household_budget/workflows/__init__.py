"""High-level workflows composed from the ingest and classification modules."""

from .import_flow import ImportResult, import_csv_file, import_transactions

__all__ = ["ImportResult", "import_csv_file", "import_transactions"]
