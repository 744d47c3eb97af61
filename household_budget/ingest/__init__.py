"""CSV ingestion: parsing, column mapping and saved mapping profiles."""

from .csv_reader import (
    applicable_mapping,
    apply_mapping,
    detect_mapping,
    parse,
    parse_date,
    parse_with_headers,
    read_upload,
)
from .profiles import MappingProfiles, ResolvedMapping

__all__ = [
    "parse",
    "parse_with_headers",
    "read_upload",
    "detect_mapping",
    "applicable_mapping",
    "apply_mapping",
    "parse_date",
    "MappingProfiles",
    "ResolvedMapping",
]
