"""Merchant keys and the learned merchant → category store.

Bank exports describe the same merchant in many ways ("STARBUCKS #4521",
"STARBUCKS #8832", "SQ *STARBUCKS 0042 SEATTLE"). :func:`normalize` reduces a
description to a stable key so that a category the user picked once can be
applied to every later row from that merchant.

:class:`MerchantMappings` is a plain key-value object owned by the caller. It
is passed into the classifier and to the learning call; nothing in the package
keeps one at module level.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterator, Mapping

from .logging_setup import get_logger

_logger = get_logger("household_budget.merchants")

_STORE_NUMBER_RE = re.compile(r"\s*#\s*\d+")
# Anything from the first 4+ digit token onward (reference/transaction ids,
# terminal numbers, trailing location text).
_TRAILING_ID_RE = re.compile(r"\s+\d{4,}\b.*$")
_PUNCT_RE = re.compile(r"[^\w\s&]+")


def normalize(description: str | None) -> str:
    """Return the canonical merchant key for ``description``.

    Steps: NFKC + casefold, drop ``#1234`` store numbers, drop everything from
    the first 4+ digit token that follows other text, replace punctuation with
    spaces, collapse whitespace, and collapse consecutive repeated tokens.
    Blank input gives ``""``.
    """

    if not description:
        return ""
    s = unicodedata.normalize("NFKC", str(description)).casefold()
    s = _STORE_NUMBER_RE.sub(" ", s)
    s = _PUNCT_RE.sub(" ", s)
    s = " ".join(s.split())
    s = _TRAILING_ID_RE.sub("", s)

    tokens: list[str] = []
    for tok in s.split():
        if tokens and tokens[-1] == tok:
            continue
        tokens.append(tok)
    return " ".join(tokens)


class MerchantMappings:
    """Learned ``merchant key -> category id`` associations.

    Keys are always stored normalized. The store only grows: learning an
    existing key overwrites its category, nothing is ever pruned.
    """

    def __init__(self, entries: Mapping[str, str] | None = None) -> None:
        self._entries: dict[str, str] = {}
        for key, category_id in (entries or {}).items():
            self.learn(key, category_id)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and normalize(key) in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def get(self, key: str) -> str | None:
        """Category id for a merchant key (or raw description), if learned."""

        return self._entries.get(normalize(key))

    def learn(self, key: str, category_id: str) -> bool:
        """Upsert ``key -> category_id``. Returns False when either side is blank."""

        norm = normalize(key)
        cid = (category_id or "").strip()
        if not norm or not cid:
            _logger.debug("skipping merchant mapping with blank key or category: %r", key)
            return False
        previous = self._entries.get(norm)
        self._entries[norm] = cid
        if previous != cid:
            _logger.debug("learned merchant %r -> %s", norm, cid)
        return True

    def items(self) -> list[tuple[str, str]]:
        return list(self._entries.items())

    def to_dict(self) -> dict[str, str]:
        return dict(self._entries)

    @classmethod
    def from_dict(cls, data: Mapping[str, str]) -> MerchantMappings:
        return cls(data)


__all__ = ["normalize", "MerchantMappings"]
