"""Bank-export CSV → raw rows → mapped rows.

Parsing follows RFC 4180 via the stdlib :mod:`csv` module: quoted fields may
contain commas, newlines and doubled quotes. Unlike provider-specific
adapters, nothing here assumes a fixed header set; the three fields the engine
needs (date, description, amount) are located either by a saved
:class:`~household_budget.models.ColumnMapping` or by header heuristics.

Failure policy
--------------
- Unreadable/empty/non-CSV uploads raise :class:`ImportRejectedError`; a file
  is never partially imported.
- Malformed quoting raises :class:`CsvRejectedError`.
- An unparseable amount cell becomes ``Money(0)`` with ``amount_error`` set
  and the raw text preserved; it never aborts the import.
"""

from __future__ import annotations

import csv
import datetime as dt
from collections.abc import Iterable, Sequence
from io import StringIO
from os import PathLike
from pathlib import Path

from ..errors import (
    CsvRejectedError,
    ImportRejectedError,
    IncompleteMappingError,
    InvalidAmountError,
)
from ..logging_setup import get_logger
from ..models import ColumnMapping, MappedRow, RawRow
from ..money import Money

_logger = get_logger("household_budget.ingest.csv_reader")

# Ordered keyword lists per field. Headers are compared case-insensitively and
# the first header (in file order) containing any keyword wins.
DATE_KEYWORDS: tuple[str, ...] = ("date", "posted", "transaction date", "trans date")
DESCRIPTION_KEYWORDS: tuple[str, ...] = ("description", "merchant", "payee", "details", "name")
AMOUNT_KEYWORDS: tuple[str, ...] = ("amount", "value", "debit", "charge", "transaction amount")

# Amount columns whose positive values are money leaving the account.
_OUTFLOW_HEADER_TOKENS: tuple[str, ...] = ("debit", "charge", "withdrawal", "outflow")

_DATE_FORMATS: tuple[str, ...] = ("%Y-%m-%d", "%m/%d/%Y", "%m/%d/%y", "%Y/%m/%d")

# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_with_headers(text: str) -> tuple[list[str], list[RawRow]]:
    """Return ``(headers, rows)`` for CSV ``text``.

    - A UTF-8 BOM and blank lines are ignored.
    - Header and cell text is trimmed. Rows shorter than the header are
      padded with ``""``; surplus cells are dropped.
    - When a header name repeats, the first column with that name wins.
    """

    if not text or not text.strip():
        return [], []

    try:
        reader = csv.reader(StringIO(text.lstrip("\ufeff")), strict=True)
        records = [rec for rec in reader if any(cell.strip() for cell in rec)]
    except csv.Error as exc:
        raise CsvRejectedError(f"Failed to parse CSV: {exc}") from exc

    if not records:
        return [], []

    headers = [h.strip() for h in records[0]]
    if not any(headers):
        raise CsvRejectedError("CSV appears to have no header row")

    rows: list[RawRow] = []
    for rec in records[1:]:
        row: RawRow = {}
        for i, header in enumerate(headers):
            if not header or header in row:
                continue
            row[header] = rec[i].strip() if i < len(rec) else ""
        rows.append(row)

    unique_headers = list(dict.fromkeys(h for h in headers if h))
    _logger.debug("parsed %d row(s) with headers %s", len(rows), unique_headers)
    return unique_headers, rows


def parse(text: str) -> list[RawRow]:
    """Parse CSV ``text`` into header → cell mappings in file order."""

    _headers, rows = parse_with_headers(text)
    return rows


def read_upload(path: str | PathLike[str]) -> str:
    """Read an uploaded file as text, rejecting anything that is not a usable CSV."""

    p = Path(path)
    if p.suffix.lower() != ".csv":
        raise ImportRejectedError(f"Please upload a CSV file (got {p.name!r})")
    try:
        data = p.read_bytes()
    except FileNotFoundError as exc:
        raise ImportRejectedError(f"File not found: {p}") from exc
    except PermissionError as exc:
        raise ImportRejectedError(f"Permission denied: {p}") from exc
    if not data.strip():
        raise ImportRejectedError(f"The file is empty: {p.name}")
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ImportRejectedError(f"File is not UTF-8 text: {p.name}") from exc


# ---------------------------------------------------------------------------
# Column mapping
# ---------------------------------------------------------------------------


def detect_mapping(headers: Sequence[str]) -> ColumnMapping:
    """Best-effort mapping from header names; unmatched fields stay blank.

    Headers are scanned in file order. A header is assigned to at most one
    field (date is tried first, then description, then amount).
    """

    found: dict[str, str] = {}
    keyword_table = (
        ("date", DATE_KEYWORDS),
        ("description", DESCRIPTION_KEYWORDS),
        ("amount", AMOUNT_KEYWORDS),
    )
    for header in headers:
        col = header.strip().lower()
        if not col:
            continue
        for field_name, keywords in keyword_table:
            if field_name in found:
                continue
            if any(kw in col for kw in keywords):
                found[field_name] = header
                break
    return ColumnMapping(**found)


def applicable_mapping(mapping: ColumnMapping, headers: Iterable[str]) -> bool:
    """True when ``mapping`` is complete and every header exists verbatim."""

    header_set = set(headers)
    return mapping.is_complete() and all(h in header_set for h in mapping.headers())


def is_outflow_column(header: str) -> bool:
    col = header.lower()
    if "credit" in col:
        return False
    return any(tok in col for tok in _OUTFLOW_HEADER_TOKENS)


def parse_date(value: str | None) -> dt.date | None:
    """Parse ISO or US-style dates; return ``None`` when unparseable."""

    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    # Drop any time component ("2024-05-01T10:00:00", "05/01/2024 10:00").
    first = s.split()[0].split("T", 1)[0]
    for fmt in _DATE_FORMATS:
        try:
            return dt.datetime.strptime(first, fmt).date()
        except ValueError:
            continue
    return None


def apply_mapping(
    rows: Sequence[RawRow],
    mapping: ColumnMapping,
    *,
    outflow_column: bool | None = None,
) -> list[MappedRow]:
    """Project raw rows onto date/description/amount.

    Parameters
    ----------
    rows:
        Parsed CSV rows.
    mapping:
        A complete column mapping.
    outflow_column:
        Whether positive values in the amount column are outflows (a "Debit"
        column). ``None`` infers it from the amount header name.

    Raises
    ------
    IncompleteMappingError
        When any of the three fields is unmapped.
    """

    missing = mapping.missing_fields()
    if missing:
        raise IncompleteMappingError(missing)

    invert = is_outflow_column(mapping.amount) if outflow_column is None else outflow_column

    mapped: list[MappedRow] = []
    errors = 0
    for idx, row in enumerate(rows):
        raw_amount = (row.get(mapping.amount) or "").strip()
        try:
            amount = Money.parse_input(raw_amount)
            amount_error = False
        except InvalidAmountError:
            amount = Money.zero()
            amount_error = True
            errors += 1
        if invert:
            amount = amount.negate()

        mapped.append(
            MappedRow(
                index=idx,
                date=parse_date(row.get(mapping.date)),
                description=(row.get(mapping.description) or "").strip(),
                amount=amount,
                raw_amount=raw_amount,
                amount_error=amount_error,
                raw=dict(row),
            )
        )

    if errors:
        _logger.warning("%d amount cell(s) could not be parsed and were set to 0", errors)
    return mapped


__all__ = [
    "DATE_KEYWORDS",
    "DESCRIPTION_KEYWORDS",
    "AMOUNT_KEYWORDS",
    "parse",
    "parse_with_headers",
    "read_upload",
    "detect_mapping",
    "applicable_mapping",
    "is_outflow_column",
    "parse_date",
    "apply_mapping",
]
