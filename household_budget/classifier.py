"""Rule-based category assignment with confidence scores and learned corrections.

Order of precedence for one transaction:

1. **Auto-ignore** – the description contains an ignore pattern (transfers,
   card payments): System ``ignore`` category, confidence 1.0, no review.
2. **Learned merchant** – the normalized merchant key has an entry in the
   caller's :class:`~household_budget.merchants.MerchantMappings` that points
   at a known category: that category, confidence 1.0, no review.
3. **Keyword score** – every non-system category is scored against the
   normalized description using one ordered rule table; the best score wins
   and ties keep the first declared category.
4. Otherwise the transaction stays unclassified (``None``, 0.0, review).

Scores are counted in tenths so that thresholds compare exactly: each
distinct keyword hit is worth 3 tenths and a category name (or synonym) hit
adds 5 tenths, capped at 10.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, replace
from typing import Literal

from .logging_setup import get_logger
from .merchants import MerchantMappings, normalize
from .models import (
    IGNORE_CATEGORY,
    IGNORE_CATEGORY_ID,
    Category,
    MappedRow,
    Source,
    Transaction,
)
from .money import Money, sum_money
from .rules import DEFAULT_RULES, RuleSet

_logger = get_logger("household_budget.classifier")

HIGH_CONFIDENCE: float = 0.8
MEDIUM_CONFIDENCE: float = 0.5

_KEYWORD_TENTHS = 3
_NAME_TENTHS = 5
_MAX_TENTHS = 10

type ConfidenceLabel = Literal["High", "Medium", "Low"]
type ClassificationReason = Literal["ignore", "learned", "keywords", "none"]


@dataclass(frozen=True, slots=True)
class Classification:
    category: Category | None
    confidence: float
    needs_review: bool
    reason: ClassificationReason = "none"


UNCLASSIFIED = Classification(category=None, confidence=0.0, needs_review=True)


@dataclass(frozen=True, slots=True)
class KeywordRule:
    """One row of the scoring table: a category and the terms that point at it."""

    category: Category
    keywords: tuple[str, ...]
    names: tuple[str, ...]


# ---------------------------------------------------------------------------
# Rule table and scoring
# ---------------------------------------------------------------------------


def _term_in(text: str, term: str) -> bool:
    # Whole words only, plus a plural ending: "food" matches "foods",
    # "gas" does not match "gastropub".
    if not term:
        return False
    return re.search(r"(?<!\w)" + re.escape(term) + r"(?:s|es)?(?!\w)", text) is not None


def _add_term(terms: list[str], raw: str) -> None:
    t = normalize(raw)
    if t and t not in terms:
        terms.append(t)


def _derived_keywords(category: Category, rules: RuleSet) -> list[str]:
    name = " ".join(category.name.split()).casefold()
    terms: list[str] = []
    _add_term(terms, name)
    for fragment, words in rules.keyword_patterns.items():
        if fragment in name or name in fragment:
            for w in words:
                _add_term(terms, w)
    for part in re.split(r"[\s&\-]+", name):
        if len(part) > 2:
            _add_term(terms, part)
    for w in rules.type_keywords.get(str(category.type), []):
        _add_term(terms, w)
    return terms


def keyword_table(
    categories: Iterable[Category], rules: RuleSet | None = None
) -> list[KeywordRule]:
    """Build the ordered scoring table for ``categories`` (System types skipped).

    Categories that declare their own ``keywords`` use exactly those;
    otherwise keywords come from the name, its parts and the rule set.
    """

    rs = rules or DEFAULT_RULES
    table: list[KeywordRule] = []
    for cat in categories:
        if cat.is_system:
            continue
        if cat.keywords:
            terms: list[str] = []
            for kw in cat.keywords:
                _add_term(terms, kw)
        else:
            terms = _derived_keywords(cat, rs)
        names: list[str] = []
        _add_term(names, cat.name)
        for syn in rs.synonyms_for(cat.name):
            _add_term(names, syn)
        table.append(KeywordRule(category=cat, keywords=tuple(terms), names=tuple(names)))
    return table


def _score_tenths(key: str, rule: KeywordRule) -> int:
    hits = sum(1 for kw in rule.keywords if _term_in(key, kw))
    tenths = hits * _KEYWORD_TENTHS
    if any(_term_in(key, n) for n in rule.names):
        tenths += _NAME_TENTHS
    return min(tenths, _MAX_TENTHS)


def score(description: str, rule: KeywordRule) -> float:
    """Confidence in ``[0, 1]`` that ``description`` belongs to ``rule.category``."""

    return _score_tenths(normalize(description), rule) / _MAX_TENTHS


def is_auto_ignored(description: str | None, rules: RuleSet | None = None) -> bool:
    """Whether ``description`` is a transfer or payment counted elsewhere.

    Transfers that name savings activity ("TRANSFER TO SAVINGS") are kept so
    they reach the savings actual.
    """

    if not description:
        return False
    rs = rules or DEFAULT_RULES
    lowered = " ".join(description.split()).casefold()
    key = normalize(description)
    if not any(p in lowered or p in key for p in rs.ignore_patterns):
        return False
    return not any(kw in lowered for kw in rs.savings_keywords)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def _learned_category(
    key: str, categories: Sequence[Category], mappings: MerchantMappings
) -> Category | None:
    category_id = mappings.get(key)
    if category_id is None:
        return None
    for cat in categories:
        if cat.id == category_id:
            return cat
    if category_id == IGNORE_CATEGORY_ID:
        return IGNORE_CATEGORY
    _logger.debug("learned mapping %r points at unknown category %r", key, category_id)
    return None


def classify(
    transaction: Transaction | MappedRow,
    categories: Sequence[Category],
    mappings: MerchantMappings,
    rules: RuleSet | None = None,
) -> Classification:
    """Assign a category to ``transaction``.

    Pure apart from reading ``mappings``: identical inputs give identical
    results. Unclassifiable input yields :data:`UNCLASSIFIED`.
    """

    rs = rules or DEFAULT_RULES
    description = transaction.description or ""
    if is_auto_ignored(description, rs):
        return Classification(IGNORE_CATEGORY, 1.0, needs_review=False, reason="ignore")

    key = normalize(description)
    if not key:
        return UNCLASSIFIED

    learned = _learned_category(key, categories, mappings)
    if learned is not None:
        return Classification(learned, 1.0, needs_review=False, reason="learned")

    best: KeywordRule | None = None
    best_tenths = 0
    for rule in keyword_table(categories, rs):
        tenths = _score_tenths(key, rule)
        if tenths > best_tenths:
            best, best_tenths = rule, tenths
    if best is None:
        return UNCLASSIFIED

    confidence = best_tenths / _MAX_TENTHS
    return Classification(
        best.category,
        confidence,
        needs_review=confidence < HIGH_CONFIDENCE,
        reason="keywords",
    )


def confidence_label(confidence: float) -> ConfidenceLabel:
    if confidence >= HIGH_CONFIDENCE:
        return "High"
    if confidence >= MEDIUM_CONFIDENCE:
        return "Medium"
    return "Low"


def learn_merchant_mapping(
    mappings: MerchantMappings,
    description: str,
    category_id: str,
    *,
    categories: Sequence[Category] = (),
) -> bool:
    """Record a user correction so the merchant classifies automatically next time.

    System categories (``ignore``) are never learned; ``categories`` lets the
    caller identify other System categories by id. Returns whether the store
    changed.
    """

    if category_id == IGNORE_CATEGORY_ID:
        return False
    if any(c.id == category_id and c.is_system for c in categories):
        return False
    return mappings.learn(description, category_id)


def with_ignore(categories: Iterable[Category]) -> list[Category]:
    """``categories`` plus the System ignore category (added once, at the end)."""

    out = list(categories)
    if not any(c.id == IGNORE_CATEGORY_ID for c in out):
        out.append(IGNORE_CATEGORY)
    return out


# ---------------------------------------------------------------------------
# Import helpers
# ---------------------------------------------------------------------------


def apply_classification(tx: Transaction, result: Classification) -> Transaction:
    return replace(
        tx,
        category=result.category,
        confidence=result.confidence,
        needs_review=result.needs_review,
    )


def _new_id() -> str:
    return uuid.uuid4().hex


def categorize_rows(
    rows: Iterable[MappedRow],
    categories: Sequence[Category],
    mappings: MerchantMappings,
    rules: RuleSet | None = None,
    *,
    id_factory: Callable[[], str] = _new_id,
) -> list[Transaction]:
    """Turn mapped CSV rows into classified transactions, preserving order.

    A row whose amount could not be parsed always needs review.
    """

    rs = rules or DEFAULT_RULES
    out: list[Transaction] = []
    for row in rows:
        result = classify(row, categories, mappings, rs)
        out.append(
            Transaction(
                id=id_factory(),
                date=row.date,
                description=row.description,
                amount=row.amount,
                category=result.category,
                confidence=result.confidence,
                needs_review=result.needs_review or row.amount_error,
                confirmed=False,
                source=Source.IMPORT,
                raw=dict(row.raw),
            )
        )
    return out


@dataclass(frozen=True, slots=True)
class ImportSummary:
    total_imported: int
    categorized: int
    needs_review: int
    ignored: int
    total_amount: Money


def summarize(transactions: Sequence[Transaction]) -> ImportSummary:
    """Counts for the import review screen; ignored rows count only as ``ignored``."""

    kept = [t for t in transactions if not t.is_ignored]
    return ImportSummary(
        total_imported=len(transactions),
        categorized=sum(1 for t in kept if t.category is not None),
        needs_review=sum(1 for t in kept if t.needs_review),
        ignored=len(transactions) - len(kept),
        total_amount=sum_money(t.amount for t in kept),
    )


__all__ = [
    "HIGH_CONFIDENCE",
    "MEDIUM_CONFIDENCE",
    "Classification",
    "UNCLASSIFIED",
    "KeywordRule",
    "ImportSummary",
    "keyword_table",
    "score",
    "is_auto_ignored",
    "classify",
    "confidence_label",
    "learn_merchant_mapping",
    "with_ignore",
    "apply_classification",
    "categorize_rows",
    "summarize",
]
