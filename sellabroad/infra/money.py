from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from numbers import Real
from typing import Any, Union

Number = Union[Decimal, int, str, Real]

_Q2 = Decimal("0.01")
_Q1 = Decimal("0.1")
_UNIT = Decimal("1")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def _quantize(v: Decimal, exp: Decimal) -> Decimal:
    # widen precision so large amounts keep every integer digit
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, v.adjusted() - exp.adjusted() + 2)
        return v.quantize(exp, rounding=ROUND_HALF_UP)


def q2(v: Decimal) -> Decimal:
    return _quantize(v, _Q2)


def q1(v: Decimal) -> Decimal:
    return _quantize(v, _Q1)


def round_int(v: Decimal) -> int:
    """Nearest integer, halves away from zero."""
    return int(_quantize(v, _UNIT))


def as_decimal(value: Any, key: str = "value", default: Decimal = ZERO) -> Decimal:
    if value is None:
        return default
    if isinstance(value, bool):
        raise TypeError(f"{key}: bool not allowed")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except (AttributeError, InvalidOperation) as exc:
            raise ValueError(f"{key}: invalid decimal string") from exc
    if isinstance(value, Real):
        # repr keeps the shortest round-tripping form of a float
        return Decimal(repr(value))
    raise TypeError(f"{key}: unsupported type {type(value).__name__}")


def non_negative(value: Any, key: str = "value") -> Decimal:
    d = as_decimal(value, key)
    if not d.is_finite():
        raise ValueError(f"{key}: must be finite")
    return d if d > 0 else ZERO


def fmt_money(v: Decimal) -> str:
    return f"{v:,.2f}"


def fmt_amount(v: Decimal) -> str:
    """Thousands separators, no padded zero decimals: 2850.00 -> '2,850', 2850.50 -> '2,850.5'."""
    text = fmt_money(v)
    return text.rstrip("0").rstrip(".") if "." in text else text
