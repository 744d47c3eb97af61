"""Workflow orchestrator for importing a bank-export CSV.

Composes parsing, column-mapping resolution and classification behind one
call. The result is a list of transactions ready for the review screen; the
caller decides what to persist (see :func:`household_budget.reconcile.for_save`).
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from os import PathLike

from ..classifier import ImportSummary, categorize_rows, summarize, with_ignore
from ..ingest.csv_reader import apply_mapping, parse_with_headers, read_upload
from ..ingest.profiles import MappingProfiles
from ..logging_setup import get_logger
from ..merchants import MerchantMappings
from ..models import Category, ColumnMapping, Transaction
from ..rules import RuleSet

_logger = get_logger("household_budget.workflows.import_flow")


@dataclass(frozen=True, slots=True)
class ImportResult:
    transactions: list[Transaction]
    mapping: ColumnMapping
    profile_name: str | None
    headers: list[str]
    amount_errors: int
    summary: ImportSummary
    missing_fields: tuple[str, ...] = ()

    @property
    def is_complete(self) -> bool:
        """False when the file could not be mapped; nothing was imported."""
        return not self.missing_fields


def import_transactions(
    text: str,
    *,
    categories: Sequence[Category],
    mappings: MerchantMappings,
    profiles: MappingProfiles | None = None,
    profile: str | None = None,
    mapping: ColumnMapping | None = None,
    rules: RuleSet | None = None,
    on_progress: Callable[[str], None] | None = None,
) -> ImportResult:
    """CSV text → categorized transactions.

    When no complete column mapping can be resolved, the result carries the
    partial mapping and its ``missing_fields`` and no transactions; the
    caller asks the user to map the remaining columns.

    Parameters
    ----------
    text:
        Full CSV file content.
    categories:
        The budget's categories. The System ignore category is added when
        missing.
    mappings:
        Learned merchant mappings (read only here).
    profiles / profile:
        Saved column mappings; ``profile`` names the one to try first, then
        the default profile is tried. A profile is used only if all of its
        headers are present in the file.
    mapping:
        Explicit mapping that bypasses profiles and detection.
    rules:
        Classification rules; defaults to the built-in rule set.
    on_progress:
        Optional callable receiving short status lines (e.g. ``print``).

    Raises
    ------
    CsvRejectedError
        When the text is not well-formed CSV.
    """

    headers, rows = parse_with_headers(text)
    if not rows:
        if on_progress:
            on_progress("No transactions to import.")
        return ImportResult(
            transactions=[],
            mapping=mapping or ColumnMapping(),
            profile_name=None,
            headers=headers,
            amount_errors=0,
            summary=summarize([]),
        )

    profile_name: str | None = None
    if mapping is None:
        resolved = (profiles or MappingProfiles()).resolve(headers, preferred=profile)
        mapping, profile_name = resolved.mapping, resolved.profile_name
    missing = mapping.missing_fields()
    if missing:
        _logger.warning("column mapping is incomplete; unmapped: %s", ", ".join(missing))
        if on_progress:
            on_progress("Could not map columns: " + ", ".join(missing))
        return ImportResult(
            transactions=[],
            mapping=mapping,
            profile_name=profile_name,
            headers=headers,
            amount_errors=0,
            summary=summarize([]),
            missing_fields=missing,
        )
    if on_progress:
        source = f"profile {profile_name!r}" if profile_name else "header detection"
        on_progress(
            f"Columns from {source}: date={mapping.date!r}, "
            f"description={mapping.description!r}, amount={mapping.amount!r}"
        )

    mapped = apply_mapping(rows, mapping)
    transactions = categorize_rows(mapped, with_ignore(categories), mappings, rules)
    summary = summarize(transactions)
    amount_errors = sum(1 for r in mapped if r.amount_error)
    _logger.info(
        "imported %d row(s): %d categorized, %d need review, %d ignored, %d amount error(s)",
        summary.total_imported,
        summary.categorized,
        summary.needs_review,
        summary.ignored,
        amount_errors,
    )
    return ImportResult(
        transactions=transactions,
        mapping=mapping,
        profile_name=profile_name,
        headers=headers,
        amount_errors=amount_errors,
        summary=summary,
    )


def import_csv_file(
    csv_path: str | PathLike[str],
    *,
    categories: Sequence[Category],
    mappings: MerchantMappings,
    profiles: MappingProfiles | None = None,
    profile: str | None = None,
    mapping: ColumnMapping | None = None,
    rules: RuleSet | None = None,
    on_progress: Callable[[str], None] | None = None,
) -> ImportResult:
    """Like :func:`import_transactions`, reading the upload at ``csv_path`` first.

    Raises :class:`~household_budget.errors.ImportRejectedError` for files that
    cannot be imported at all.
    """

    text = read_upload(csv_path)
    return import_transactions(
        text,
        categories=categories,
        mappings=mappings,
        profiles=profiles,
        profile=profile,
        mapping=mapping,
        rules=rules,
        on_progress=on_progress,
    )


__all__ = ["ImportResult", "import_transactions", "import_csv_file"]
