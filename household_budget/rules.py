"""Classification rule data: auto-ignore patterns, keyword tables and synonyms.

The rules are data, not logic. :data:`DEFAULT_RULES` ships a reasonable
default set (transfers and card payments are ignored unless they name
savings; common merchant keywords per category name). A household can
replace it with a JSON file that validates against :class:`RuleSet`,
pointed to by an explicit path or the ``HOUSEHOLD_BUDGET_RULES``
environment variable.

Example rule file::

    {
      "ignore_patterns": ["transfer", "autopay"],
      "keyword_patterns": {"groceries": ["whole foods", "safeway"]},
      "type_keywords": {"Income": ["payroll"]},
      "synonyms": {"salary": ["payroll"]}
    }

Omitted keys fall back to the defaults.
"""

from __future__ import annotations

import os
from os import PathLike
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .logging_setup import get_logger

_logger = get_logger("household_budget.rules")

RULES_ENV = "HOUSEHOLD_BUDGET_RULES"

# ---------------------------------------------------------------------------
# Default tables
# ---------------------------------------------------------------------------

_CARD_PAYMENT_PATTERNS: tuple[str, ...] = (
    "payment thank you",
    "autopay",
    "online payment",
    "card payment",
    "credit card payment",
    "balance payment",
)

_TRANSFER_PATTERNS: tuple[str, ...] = (
    "transfer",
    "zelle",
    "venmo",
    "paypal transfer",
    "internal transfer",
    "account transfer",
    "balance transfer",
)

_KEYWORD_PATTERNS: dict[str, list[str]] = {
    # Food & dining
    "groceries": [
        "grocery", "supermarket", "market", "food", "whole foods", "trader joe",
        "safeway", "kroger", "walmart", "target", "costco",
    ],
    "dining": [
        "restaurant", "cafe", "coffee", "pizza", "burger", "starbucks", "mcdonald",
        "chipotle", "subway", "takeout", "delivery",
    ],
    "fast food": [
        "mcdonald", "burger king", "wendy", "taco bell", "kfc", "subway",
        "pizza hut", "domino", "quick service",
    ],
    # Transportation
    "gas": [
        "gas", "fuel", "station", "shell", "chevron", "exxon", "mobil", "bp", "arco", "petroleum",
    ],
    "parking": ["parking", "meter", "garage", "lot", "valet"],
    "uber": ["uber", "lyft", "rideshare", "taxi", "cab"],
    "public transport": ["metro", "bus", "train", "transit", "subway", "mta", "bart"],
    # Shopping
    "clothing": [
        "clothing", "apparel", "fashion", "nike", "adidas", "gap", "zara", "h&m",
        "uniqlo", "nordstrom", "macy",
    ],
    "amazon": ["amazon", "amzn", "aws"],
    "electronics": ["best buy", "apple", "microsoft", "electronics", "computer", "phone", "tech"],
    # Utilities & services
    "utilities": [
        "electric", "power", "gas company", "water", "sewer", "utility", "pge", "edison",
    ],
    "internet": ["internet", "wifi", "comcast", "xfinity", "verizon", "att", "spectrum", "cox"],
    "phone": ["phone", "mobile", "cellular", "verizon", "att", "t mobile", "sprint"],
    "streaming": ["netflix", "spotify", "hulu", "disney", "amazon prime", "youtube", "apple music"],
    # Health & fitness
    "gym": ["gym", "fitness", "planet fitness", "la fitness", "crossfit", "yoga", "pilates"],
    "medical": ["medical", "doctor", "hospital", "pharmacy", "cvs", "walgreens", "urgent care"],
    "dental": ["dental", "dentist", "orthodontist"],
    # Financial
    "bank": ["bank", "atm", "fee", "maintenance", "overdraft"],
    "insurance": [
        "insurance", "premium", "policy", "allstate", "geico", "progressive", "state farm",
    ],
    # Housing
    "rent": ["rent", "rental", "lease", "apartment", "housing"],
    "mortgage": ["mortgage", "loan payment", "principal", "interest"],
    "home improvement": ["home depot", "lowes", "hardware", "improvement", "repair"],
    # Entertainment
    "movies": ["movie", "cinema", "theater", "amc", "regal", "film"],
    "entertainment": ["entertainment", "concert", "show", "event", "ticket"],
}

_TYPE_KEYWORDS: dict[str, list[str]] = {
    "Income": ["salary", "payroll", "deposit", "direct deposit"],
}

_SYNONYMS: dict[str, list[str]] = {
    "salary": ["payroll"],
    "payroll": ["salary"],
    "freelance": ["contract", "freelance"],
    "contract": ["freelance"],
}

_SAVINGS_KEYWORDS: tuple[str, ...] = ("savings", "emergency fund", "investment")

# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


def _clean_terms(values: list[str]) -> list[str]:
    out: list[str] = []
    for v in values:
        t = " ".join(str(v).split()).casefold()
        if t and t not in out:
            out.append(t)
    return out


class RuleSet(BaseModel):
    """Validated classification rule data.

    Attributes
    ----------
    ignore_patterns:
        Substrings that route a description to the System ignore category
        (internal transfers, credit-card payments).
    keyword_patterns:
        Category-name fragment -> merchant keywords. A category picks up a
        row's keywords when its name contains the fragment or vice versa.
    type_keywords:
        Extra keywords for every category of a given type (``"Income"``...).
    synonyms:
        Name -> alternative words that count as a name match.
    savings_keywords:
        Words that mark a transaction as savings activity.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    ignore_patterns: list[str] = Field(
        default_factory=lambda: [*_CARD_PAYMENT_PATTERNS, *_TRANSFER_PATTERNS]
    )
    keyword_patterns: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in _KEYWORD_PATTERNS.items()}
    )
    type_keywords: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in _TYPE_KEYWORDS.items()}
    )
    synonyms: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in _SYNONYMS.items()}
    )
    savings_keywords: list[str] = Field(default_factory=lambda: list(_SAVINGS_KEYWORDS))

    @field_validator("ignore_patterns", "savings_keywords")
    @classmethod
    def _clean_list(cls, v: list[str]) -> list[str]:
        return _clean_terms(v)

    @field_validator("keyword_patterns", "synonyms")
    @classmethod
    def _clean_table(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        out: dict[str, list[str]] = {}
        for key, words in v.items():
            k = " ".join(key.split()).casefold()
            if k:
                out[k] = _clean_terms(words)
        return out

    @field_validator("type_keywords")
    @classmethod
    def _clean_type_table(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        # Keys are category type names; keep their casing ("Income").
        return {key.strip(): _clean_terms(words) for key, words in v.items() if key.strip()}

    def synonyms_for(self, name: str) -> list[str]:
        """Synonyms of the full ``name`` and of each of its words."""

        key = " ".join(name.split()).casefold()
        found: list[str] = []
        for candidate in (key, *key.split()):
            for word in self.synonyms.get(candidate, []):
                if word not in found:
                    found.append(word)
        return found


DEFAULT_RULES = RuleSet()


def load_rules(path: str | PathLike[str] | None = None) -> RuleSet:
    """Load a :class:`RuleSet` from JSON.

    Resolution order: ``path`` argument, then ``HOUSEHOLD_BUDGET_RULES``, then
    :data:`DEFAULT_RULES`.

    Raises
    ------
    FileNotFoundError
        When an explicitly configured file does not exist.
    ValueError
        When the file does not validate (wraps pydantic's ``ValidationError``).
    """

    source = path if path is not None else os.getenv(RULES_ENV)
    if not source:
        return DEFAULT_RULES
    p = Path(source)
    text = p.read_text(encoding="utf-8")
    try:
        rules = RuleSet.model_validate_json(text)
    except ValidationError as exc:
        raise ValueError(f"invalid rule file {p}: {exc}") from exc
    _logger.info(
        "loaded rule set from %s (%d ignore patterns, %d keyword rows)",
        p,
        len(rules.ignore_patterns),
        len(rules.keyword_patterns),
    )
    return rules


__all__ = ["RULES_ENV", "RuleSet", "DEFAULT_RULES", "load_rules"]
