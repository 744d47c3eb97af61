from __future__ import annotations

from decimal import Decimal

import pytest

from household_budget.errors import InvalidAmountError
from household_budget.money import Frequency, Money, sum_money


# ---- Parsing -----------------------------------------------------------------


@pytest.mark.parametrize(
    ("text", "minor"),
    [
        ("$1,234.56", 123456),
        ("1234.5", 123450),
        ("(82.40)", -8240),
        ("82.40-", -8240),
        ("-2,500.00", -250000),
        ("+7", 700),
        ("USD 12.50", 1250),
        ("12.50 EUR", 1250),
        ("€ 3", 300),
        (".5", 50),
    ],
)
def test_parse_input_accepts_bank_export_formats(text: str, minor: int) -> None:
    assert Money.parse_input(text) == Money(minor)


def test_parse_input_rounds_extra_places_half_away_from_zero() -> None:
    assert Money.parse_input("1.005") == Money(101)
    assert Money.parse_input("-0.005") == Money(-1)
    assert Money.parse_input("2.004") == Money(200)


@pytest.mark.parametrize("text", ["", "   ", "abc", "1.2.3", "$", "((5))", "5)"])
def test_parse_input_rejects_non_numbers(text: str) -> None:
    with pytest.raises(InvalidAmountError):
        Money.parse_input(text)


def test_invalid_amount_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        Money.parse_input("twelve dollars")


def test_decimal_inputs_add_exactly() -> None:
    # 0.1 + 0.2 is exactly 0.3 in minor units.
    total = Money.parse_input("0.1").add(Money.parse_input("0.2"))
    assert total == Money.parse_input("0.3")
    assert total.minor == 30


# ---- Construction and arithmetic ---------------------------------------------


def test_money_requires_integer_minor_units() -> None:
    with pytest.raises(TypeError):
        Money(1.5)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        Money(True)


def test_mixing_scales_is_rejected() -> None:
    with pytest.raises(ValueError):
        Money(100, 2).add(Money(100, 3))


def test_arithmetic_operators_and_sum() -> None:
    a, b = Money(1050), Money(-250)
    assert a + b == Money(800)
    assert a - b == Money(1300)
    assert -a == Money(-1050)
    assert abs(b) == Money(250)
    assert sum([a, b, Money(1)]) == Money(801)
    assert sum_money([]) == Money(0)
    assert b < a and a >= Money(1050)


def test_multiply_and_divide_round_half_away_from_zero() -> None:
    assert Money(1000).multiply(3) == Money(3000)
    assert Money(1000).multiply(Decimal("0.333")) == Money(333)
    assert Money(1001).divide(2) == Money(501)
    assert Money(-1001).divide(2) == Money(-501)
    with pytest.raises(ZeroDivisionError):
        Money(100).divide(0)


def test_allocate_sums_exactly_and_last_part_takes_remainder() -> None:
    parts = Money(10000).allocate(3)
    assert parts == [Money(3333), Money(3333), Money(3334)]
    assert sum_money(parts) == Money(10000)

    negative = Money(-100).allocate(3)
    assert negative == [Money(-33), Money(-33), Money(-34)]

    with pytest.raises(ValueError):
        Money(100).allocate(0)


def test_with_sign_of() -> None:
    assert Money(500).with_sign_of(Money(-1)) == Money(-500)
    assert Money(-500).with_sign_of(Money(1)) == Money(500)
    assert Money(-500).with_sign_of(Money(0)) == Money(500)


# ---- Frequencies ---------------------------------------------------------------


def test_frequency_conversion_uses_fixed_multipliers() -> None:
    weekly = Money(10000)
    assert weekly.to_yearly(Frequency.WEEKLY) == Money(520000)
    assert weekly.to_yearly("Bi-weekly") == Money(260000)
    assert weekly.to_yearly(Frequency.MONTHLY) == Money(120000)
    assert weekly.to_yearly(Frequency.YEARLY) == Money(10000)
    # Monthly is always yearly / 12, never weeks x 4.33.
    assert Money(520000).from_yearly(Frequency.MONTHLY) == Money(43333)


def test_one_time_figures_have_no_recurring_value() -> None:
    assert Money(99900).to_yearly(Frequency.ONE_TIME) == Money(0)
    assert Money(99900).from_yearly(Frequency.ONE_TIME) == Money(0)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("biweekly", Frequency.BIWEEKLY),
        ("bi weekly", Frequency.BIWEEKLY),
        ("MONTHLY", Frequency.MONTHLY),
        ("one_time", Frequency.ONE_TIME),
    ],
)
def test_frequency_lookup_is_lenient(text: str, expected: Frequency) -> None:
    assert Frequency(text) is expected


# ---- Formatting ------------------------------------------------------------------


def test_format_for_display() -> None:
    assert Money(123456).format(symbol="$") == "$1,234.56"
    assert Money(-123456).format(symbol="$") == "-$1,234.56"
    assert Money(5).format() == "0.05"
    assert Money(123456).format(thousands=".", decimal=",") == "1.234,56"
    assert str(Money(123456)) == "1234.56"


def test_format_without_cents_rounds_to_whole_units() -> None:
    assert Money(150).format(show_cents=False) == "2"
    assert Money(149).format(show_cents=False) == "1"
    assert Money(-150).format(show_cents=False, symbol="$") == "-$2"
    # Rounds to zero: no negative sign.
    assert Money(-1).format(show_cents=False) == "0"


@pytest.mark.parametrize("text", ["1,234.56", "0.07", "-98,765,432.10"])
def test_parse_then_format_is_stable(text: str) -> None:
    once = Money.parse_input(text).format()
    assert once == text
    assert Money.parse_input(once).format() == once


@pytest.mark.parametrize("frequency", list(Frequency))
def test_monthly_is_always_yearly_over_twelve(frequency: Frequency) -> None:
    amount = Money.parse_input("123.45")
    yearly = amount.to_yearly(frequency)
    assert yearly.from_yearly(Frequency.MONTHLY) == yearly.divide(12)
    # A monthly figure survives the trip through yearly unchanged.
    assert amount.to_yearly(Frequency.MONTHLY).from_yearly(Frequency.MONTHLY) == amount
