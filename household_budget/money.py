"""Exact monetary arithmetic on integer minor units.

Every amount in the package is a :class:`Money`: an integer count of minor
units (cents for the default scale of 2) plus that scale. Arithmetic never
touches binary floating point; scalar multiplication and division go through
:class:`decimal.Decimal` and round half away from zero back to minor units.
Display formatting is a pure function of the minor-unit integer, and the
currency symbol is always supplied by the caller.

Frequency conversion uses fixed multipliers (Weekly 52, Bi-weekly 26,
Monthly 12, Yearly 1). A monthly figure is always yearly / 12; there are no
weeks-per-month approximations anywhere in the package.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import StrEnum

from .errors import InvalidAmountError

DEFAULT_SCALE: int = 2

# ---------------------------------------------------------------------------
# Frequencies
# ---------------------------------------------------------------------------


class Frequency(StrEnum):
    """How often a planned figure recurs."""

    WEEKLY = "Weekly"
    BIWEEKLY = "Bi-weekly"
    MONTHLY = "Monthly"
    YEARLY = "Yearly"
    # Non-recurring; contributes nothing to yearly/monthly totals.
    ONE_TIME = "One-time"

    @classmethod
    def _missing_(cls, value: object) -> Frequency | None:
        # Lenient lookup: "biweekly", "bi weekly", "MONTHLY", "one_time".
        if isinstance(value, str):
            key = re.sub(r"[\s_\-]+", "", value).lower()
            for member in cls:
                if re.sub(r"[\s_\-]+", "", member.value).lower() == key:
                    return member
        return None


FREQUENCY_MULTIPLIERS: dict[Frequency, int] = {
    Frequency.WEEKLY: 52,
    Frequency.BIWEEKLY: 26,
    Frequency.MONTHLY: 12,
    Frequency.YEARLY: 1,
    Frequency.ONE_TIME: 0,
}

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_NUMBER_RE = re.compile(r"^(?:\d+(?:\.\d*)?|\.\d+)$")
_CURRENCY_CODE_RE = re.compile(r"^[A-Za-z]{3}(?=[\d.(+\-])|(?<=[\d.)\-])[A-Za-z]{3}$")


def _as_decimal(scalar: int | Decimal | str | float) -> Decimal:
    if isinstance(scalar, bool):
        raise TypeError("booleans are not valid money scalars")
    if isinstance(scalar, Decimal):
        return scalar
    if isinstance(scalar, int):
        return Decimal(scalar)
    if isinstance(scalar, float):
        # repr() gives the shortest round-tripping text, e.g. 0.1 -> "0.1".
        return Decimal(repr(scalar))
    if isinstance(scalar, str):
        try:
            return Decimal(scalar.strip())
        except InvalidOperation as exc:
            raise ValueError(f"invalid numeric scalar: {scalar!r}") from exc
    raise TypeError(f"unsupported scalar type: {type(scalar).__name__}")


def _round_half_away(value: Decimal) -> int:
    # ROUND_HALF_UP in decimal rounds ties away from zero for both signs.
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _strip_currency(text: str) -> str:
    out: list[str] = []
    for ch in text:
        if ch.isspace() or ch in ",'_":
            continue
        if unicodedata.category(ch) == "Sc":
            continue
        out.append(ch)
    return _CURRENCY_CODE_RE.sub("", "".join(out))


# ---------------------------------------------------------------------------
# Money
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Money:
    """An exact amount as ``minor`` units at a fixed decimal ``scale``.

    Two values are equal iff their minor-unit integers (and scales) are equal.
    Mixing scales in arithmetic raises ``ValueError``.
    """

    minor: int
    scale: int = DEFAULT_SCALE

    def __post_init__(self) -> None:
        if isinstance(self.minor, bool) or not isinstance(self.minor, int):
            raise TypeError("Money.minor must be an int count of minor units")
        if isinstance(self.scale, bool) or not isinstance(self.scale, int) or self.scale < 0:
            raise ValueError("Money.scale must be a non-negative int")

    # ---- Constructors -------------------------------------------------------

    @classmethod
    def zero(cls, scale: int = DEFAULT_SCALE) -> Money:
        return cls(0, scale)

    @classmethod
    def from_decimal(cls, value: Decimal | int | str, scale: int = DEFAULT_SCALE) -> Money:
        """Build from a major-unit decimal, rounding half away from zero."""

        d = _as_decimal(value)
        return cls(_round_half_away(d.scaleb(scale)), scale)

    @classmethod
    def parse_input(cls, text: str, *, scale: int = DEFAULT_SCALE) -> Money:
        """Parse user or bank-export text such as ``"$1,234.56"`` or ``"(82.40)"``.

        Currency symbols, ISO codes, whitespace and thousands separators are
        removed. A leading or trailing ``-`` and surrounding parentheses mark
        negative amounts. Extra decimal places are rounded half away from zero
        to ``scale`` digits before conversion to minor units.

        Raises
        ------
        InvalidAmountError
            When the text is empty or not a number after cleanup.
        """

        if text is None:
            raise InvalidAmountError("amount is required")
        s = _strip_currency(str(text))
        if not s:
            raise InvalidAmountError(f"amount is empty: {text!r}")

        negative = False
        # Parentheses mark a negative amount regardless of any sign inside.
        if "(" in s or ")" in s:
            if s.count("(") != 1 or s.count(")") != 1 or not s.endswith(")"):
                raise InvalidAmountError(f"invalid amount: {text!r}")
            negative = True
            s = s.replace("(", "").replace(")", "")
        if s.startswith("-"):
            negative = True
            s = s[1:]
        elif s.startswith("+"):
            s = s[1:]
        elif s.endswith("-"):
            negative = True
            s = s[:-1]

        if not _NUMBER_RE.match(s):
            raise InvalidAmountError(f"invalid amount: {text!r}")
        d = Decimal(s)
        return cls.from_decimal(-d if negative else d, scale)

    # ---- Arithmetic ---------------------------------------------------------

    def _coerce(self, other: Money) -> Money:
        if not isinstance(other, Money):
            raise TypeError(f"expected Money, got {type(other).__name__}")
        if other.scale != self.scale:
            raise ValueError(f"cannot mix money scales {self.scale} and {other.scale}")
        return other

    def add(self, other: Money) -> Money:
        return Money(self.minor + self._coerce(other).minor, self.scale)

    def subtract(self, other: Money) -> Money:
        return Money(self.minor - self._coerce(other).minor, self.scale)

    def multiply(self, scalar: int | Decimal | str | float) -> Money:
        if isinstance(scalar, int) and not isinstance(scalar, bool):
            return Money(self.minor * scalar, self.scale)
        return Money(_round_half_away(Decimal(self.minor) * _as_decimal(scalar)), self.scale)

    def divide(self, scalar: int | Decimal | str | float) -> Money:
        d = _as_decimal(scalar)
        if d == 0:
            raise ZeroDivisionError("cannot divide money by zero")
        return Money(_round_half_away(Decimal(self.minor) / d), self.scale)

    def allocate(self, parts: int) -> list[Money]:
        """Split into ``parts`` near-equal amounts that sum exactly to ``self``.

        Every part but the last is the magnitude divided by ``parts`` rounded
        toward zero; the last absorbs the remainder. All parts carry this
        amount's sign.
        """

        if parts < 1:
            raise ValueError("parts must be >= 1")
        sign = -1 if self.minor < 0 else 1
        each, remainder = divmod(abs(self.minor), parts)
        amounts = [each] * parts
        amounts[-1] += remainder
        return [Money(sign * a, self.scale) for a in amounts]

    def abs(self) -> Money:
        return Money(abs(self.minor), self.scale)

    def negate(self) -> Money:
        return Money(-self.minor, self.scale)

    def with_sign_of(self, reference: Money) -> Money:
        """Magnitude of ``self`` carrying the sign of ``reference`` (zero counts as positive)."""

        magnitude = abs(self.minor)
        return Money(-magnitude if reference.minor < 0 else magnitude, self.scale)

    # ---- Comparison ---------------------------------------------------------

    def compare(self, other: Money) -> int:
        o = self._coerce(other).minor
        if self.minor < o:
            return -1
        if self.minor > o:
            return 1
        return 0

    def is_equal(self, other: Money) -> bool:
        return self.compare(other) == 0

    def is_positive(self) -> bool:
        return self.minor > 0

    def is_negative(self) -> bool:
        return self.minor < 0

    def is_zero(self) -> bool:
        return self.minor == 0

    # ---- Frequency conversion -----------------------------------------------

    def to_yearly(self, frequency: Frequency | str) -> Money:
        return self.multiply(FREQUENCY_MULTIPLIERS[Frequency(frequency)])

    def from_yearly(self, frequency: Frequency | str) -> Money:
        multiplier = FREQUENCY_MULTIPLIERS[Frequency(frequency)]
        if multiplier == 0:
            return Money.zero(self.scale)
        return self.divide(multiplier)

    # ---- Presentation -------------------------------------------------------

    def to_decimal(self) -> Decimal:
        return Decimal(self.minor).scaleb(-self.scale)

    def format(
        self,
        *,
        show_cents: bool = True,
        symbol: str = "",
        thousands: str = ",",
        decimal: str = ".",
    ) -> str:
        """Render for display, e.g. ``-$1,234.56`` with ``symbol="$"``.

        With ``show_cents=False`` the value is rounded half away from zero to
        whole major units.
        """

        unit = 10**self.scale
        magnitude = abs(self.minor)
        if show_cents and self.scale > 0:
            whole, frac = divmod(magnitude, unit)
            body = f"{whole:,}".replace(",", thousands) + decimal + f"{frac:0{self.scale}d}"
            nonzero = magnitude != 0
        else:
            whole = (2 * magnitude + unit) // (2 * unit)
            body = f"{whole:,}".replace(",", thousands)
            nonzero = whole != 0
        sign = "-" if self.minor < 0 and nonzero else ""
        return f"{sign}{symbol}{body}"

    def __str__(self) -> str:
        return self.format(thousands="")

    # ---- Operators ----------------------------------------------------------

    def __add__(self, other: object) -> Money:
        if isinstance(other, Money):
            return self.add(other)
        return NotImplemented

    def __radd__(self, other: object) -> Money:
        # Allows ``sum(amounts)`` with the default integer start of 0.
        if other == 0:
            return self
        return NotImplemented

    def __sub__(self, other: object) -> Money:
        if isinstance(other, Money):
            return self.subtract(other)
        return NotImplemented

    def __neg__(self) -> Money:
        return self.negate()

    def __abs__(self) -> Money:
        return self.abs()

    def __lt__(self, other: Money) -> bool:
        return self.compare(other) < 0

    def __le__(self, other: Money) -> bool:
        return self.compare(other) <= 0

    def __gt__(self, other: Money) -> bool:
        return self.compare(other) > 0

    def __ge__(self, other: Money) -> bool:
        return self.compare(other) >= 0


def sum_money(amounts: Iterable[Money], *, scale: int = DEFAULT_SCALE) -> Money:
    """Add up ``amounts`` with :meth:`Money.add`; empty input sums to zero."""

    total = Money.zero(scale)
    for amount in amounts:
        total = total.add(amount)
    return total


__all__ = [
    "DEFAULT_SCALE",
    "FREQUENCY_MULTIPLIERS",
    "Frequency",
    "Money",
    "sum_money",
]
