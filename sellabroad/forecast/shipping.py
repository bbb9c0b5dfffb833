from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

import deal

from sellabroad.infra.config import ShippingRates
from sellabroad.infra.money import ZERO, as_decimal, q2

DEFAULT_RATES = ShippingRates()

_ONE_KG = Decimal("1")


def tier_rate(tier: int, rates: ShippingRates = DEFAULT_RATES) -> Decimal:
    """Per-kg rate of a 1-kg band, in the carrier's currency."""
    return rates.base_rate_per_kg * rates.discount_factor ** max(0, tier)


def _shipping_cost_source(weight: Decimal, rates: ShippingRates) -> Decimal:
    total = ZERO
    remaining = weight
    tier = 0
    while remaining > 0 and tier < rates.max_tier:
        kg_in_tier = min(_ONE_KG, remaining)
        total += kg_in_tier * tier_rate(tier, rates)
        remaining -= kg_in_tier
        tier += 1
    # past the last discounted band the rate stops falling
    if remaining > 0:
        total += remaining * tier_rate(tier, rates)
    return q2(total)


@deal.post(lambda result: result >= 0, message="shipping cost must be >= 0")
@deal.raises(ValueError, TypeError)
def compute_shipping_cost(weight_kg: Any, rates: Optional[ShippingRates] = None) -> Decimal:
    """
    Tiered shipping cost for one parcel, in the reporting currency.

    Weight is billed in 1-kg bands; each band's per-kg rate is the previous
    one times ``discount_factor``, for at most ``max_tier`` bands. A fractional
    last band is billed pro rata at that band's rate.
    """
    rates = rates if rates is not None else DEFAULT_RATES
    weight = as_decimal(weight_kg, "weight_kg")
    if weight <= 0:
        return ZERO
    return q2(_shipping_cost_source(weight, rates) * rates.conversion_rate)


@deal.post(lambda result: result >= 0, message="effective rate must be >= 0")
@deal.raises(ValueError, TypeError)
def compute_effective_rate(weight_kg: Any, rates: Optional[ShippingRates] = None) -> Decimal:
    """Average reporting-currency cost per kg for ``weight_kg``."""
    rates = rates if rates is not None else DEFAULT_RATES
    weight = as_decimal(weight_kg, "weight_kg")
    if weight <= 0:
        return q2(tier_rate(0, rates) * rates.conversion_rate)
    return q2(compute_shipping_cost(weight, rates) / weight)
