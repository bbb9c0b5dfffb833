from __future__ import annotations

from decimal import Decimal

import pytest

from sellabroad.infra.money import as_decimal, fmt_amount, fmt_money, non_negative, q1, q2, round_int


def test_rounding_is_half_up() -> None:
    assert q2(Decimal("2.675")) == Decimal("2.68")
    assert q2(Decimal("-2.675")) == Decimal("-2.68")
    assert q1(Decimal("59.15")) == Decimal("59.2")
    assert round_int(Decimal("73.5")) == 74
    assert round_int(Decimal("0.5")) == 1
    assert round_int(Decimal("63.49")) == 63


def test_as_decimal_accepts_numbers_and_strings() -> None:
    assert as_decimal(None) == Decimal("0.00")
    assert as_decimal(None, default=Decimal("7")) == Decimal("7")
    assert as_decimal(3) == Decimal("3")
    assert as_decimal(0.1) == Decimal("0.1")
    assert as_decimal(" 12.50 ") == Decimal("12.50")


def test_as_decimal_rejects_junk() -> None:
    with pytest.raises(TypeError):
        as_decimal(True)
    with pytest.raises(TypeError):
        as_decimal([1])
    with pytest.raises(ValueError):
        as_decimal("twelve", "aov")


def test_non_negative_clamps() -> None:
    assert non_negative("-4") == Decimal("0.00")
    assert non_negative(-0.5) == Decimal("0.00")
    assert non_negative("4.2") == Decimal("4.2")
    with pytest.raises(ValueError):
        non_negative("NaN")
    with pytest.raises(ValueError):
        non_negative(float("inf"))


def test_fmt_money() -> None:
    assert fmt_money(Decimal("12345.6")) == "12,345.60"
    assert fmt_money(Decimal("-3")) == "-3.00"


def test_fmt_amount_drops_padded_decimals() -> None:
    assert fmt_amount(Decimal("2850.00")) == "2,850"
    assert fmt_amount(Decimal("12345.50")) == "12,345.5"
    assert fmt_amount(Decimal("-686.06")) == "-686.06"
    assert fmt_amount(Decimal("0.00")) == "0"


def test_quantizers_keep_large_amounts() -> None:
    big = Decimal("123456789012345678901234567.895")
    assert q2(big) == Decimal("123456789012345678901234567.90")
    assert q1(Decimal("1e40")) == Decimal("1e40")
    assert round_int(Decimal("99999999999999999999999999999.5")) == 100000000000000000000000000000
