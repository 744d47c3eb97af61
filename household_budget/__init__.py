"""Public interface for the ``household_budget`` package.

This module exposes the engine's main entry points and data types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .budget_math import (
    ViewMode,
    actual,
    budget_performance,
    category_totals,
    check_balance,
    filter_by_period,
    months_elapsed,
    planned_for_period,
    planned_monthly,
    planned_yearly,
)
from .classifier import (
    HIGH_CONFIDENCE,
    MEDIUM_CONFIDENCE,
    Classification,
    classify,
    confidence_label,
    learn_merchant_mapping,
)
from .errors import (
    CsvRejectedError,
    EmptyCombineError,
    HouseholdBudgetError,
    ImportRejectedError,
    IncompleteMappingError,
    InvalidAmountError,
    TransactionNotFoundError,
    UnbalancedSplitError,
)
from .ingest import MappingProfiles, apply_mapping, detect_mapping, parse
from .merchants import MerchantMappings, normalize
from .models import (
    IGNORE_CATEGORY,
    BudgetPlan,
    Category,
    CategoryType,
    ColumnMapping,
    PlannedFigure,
    Transaction,
)
from .money import Frequency, Money
from .reconcile import SplitItem, auto_distribute, combine, delete, edit, split
from .workflows import ImportResult, import_csv_file, import_transactions

__all__ = [
    # Money
    "Money",
    "Frequency",
    # Models / types
    "Category",
    "CategoryType",
    "IGNORE_CATEGORY",
    "ColumnMapping",
    "Transaction",
    "PlannedFigure",
    "BudgetPlan",
    # Ingest
    "parse",
    "detect_mapping",
    "apply_mapping",
    "MappingProfiles",
    "import_transactions",
    "import_csv_file",
    "ImportResult",
    # Classification
    "normalize",
    "MerchantMappings",
    "classify",
    "learn_merchant_mapping",
    "confidence_label",
    "Classification",
    "HIGH_CONFIDENCE",
    "MEDIUM_CONFIDENCE",
    # Reconciliation
    "SplitItem",
    "edit",
    "split",
    "auto_distribute",
    "combine",
    "delete",
    # Budget math
    "ViewMode",
    "filter_by_period",
    "months_elapsed",
    "planned_monthly",
    "planned_yearly",
    "planned_for_period",
    "actual",
    "budget_performance",
    "category_totals",
    "check_balance",
    # Errors
    "HouseholdBudgetError",
    "ImportRejectedError",
    "CsvRejectedError",
    "IncompleteMappingError",
    "InvalidAmountError",
    "UnbalancedSplitError",
    "EmptyCombineError",
    "TransactionNotFoundError",
]
