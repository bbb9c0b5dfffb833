from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

import deal

from sellabroad.forecast.calendar import (
    HORIZON_MONTHS,
    EventKey,
    MerchandisingEvent,
    add_months,
    default_selection,
    events_in_month,
    generate_events,
    month_key,
    month_label,
    month_start,
)
from sellabroad.forecast.shipping import compute_shipping_cost
from sellabroad.infra.config import GrowthAssumptions, ShippingRates
from sellabroad.infra.logging_std import get_logger, log_kv
from sellabroad.infra.money import HUNDRED, ZERO, non_negative, q1, q2, round_int

logger = get_logger(__name__)

DEFAULT_ASSUMPTIONS = GrowthAssumptions()

EventRef = Union[str, EventKey]


@dataclass(frozen=True, slots=True)
class BusinessInputs:
    aov: Decimal
    cogs: Decimal
    product_weight_kg: Decimal
    first_month_marketing_budget: Decimal
    shipping_per_order: Decimal

    @classmethod
    def build(
        cls,
        aov: Any,
        cogs: Any,
        product_weight_kg: Any,
        first_month_marketing_budget: Any,
        *,
        rates: Optional[ShippingRates] = None,
    ) -> "BusinessInputs":
        """Coerce to Decimal, clamp negatives to zero and price shipping from the weight."""
        weight = non_negative(product_weight_kg, "product_weight_kg")
        return cls(
            aov=non_negative(aov, "aov"),
            cogs=non_negative(cogs, "cogs"),
            product_weight_kg=weight,
            first_month_marketing_budget=non_negative(first_month_marketing_budget, "first_month_marketing_budget"),
            shipping_per_order=compute_shipping_cost(weight, rates),
        )

    @property
    def contribution_margin(self) -> Decimal:
        return q2(self.aov - self.cogs - self.shipping_per_order)

    @property
    def margin_percent(self) -> Decimal:
        if self.aov <= 0:
            return q1(ZERO)
        return q1(max(ZERO, self.contribution_margin) / self.aov * HUNDRED)


@dataclass(frozen=True, slots=True)
class MonthForecast:
    month: str
    month_label: str
    orders: int
    revenue: Decimal
    cogs_total: Decimal
    shipping_total: Decimal
    marketing_total: Decimal
    profit: Decimal
    conversion_lift_percent: int = 0
    event_name: Optional[str] = None

    @property
    def is_event_month(self) -> bool:
        return self.conversion_lift_percent > 0


@dataclass(frozen=True, slots=True)
class ForecastTotals:
    orders: int
    revenue: Decimal
    cogs_total: Decimal
    shipping_total: Decimal
    marketing_total: Decimal
    profit: Decimal
    cogs_percent: Decimal


@dataclass(frozen=True, slots=True)
class ForecastResult:
    forecast_start: date
    months: Tuple[MonthForecast, ...]
    totals: ForecastTotals
    events: Tuple[MerchandisingEvent, ...]  # selected events, generation order


# ---------------------------------------------------------------------------
# per-month steps
# ---------------------------------------------------------------------------


def marketing_spend(month_index: int, first_month_budget: Decimal, assumptions: GrowthAssumptions = DEFAULT_ASSUMPTIONS) -> Decimal:
    budget = max(first_month_budget, ZERO)
    return q2(budget * assumptions.monthly_growth_factor ** month_index)


def cac_fraction(month_index: int, assumptions: GrowthAssumptions = DEFAULT_ASSUMPTIONS) -> Decimal:
    schedule = assumptions.cac_percents
    return Decimal(schedule[min(month_index, len(schedule) - 1)]) / HUNDRED


def baseline_orders(spend: Decimal, cac: Decimal, aov: Decimal) -> Decimal:
    if aov <= 0 or cac <= 0:
        return ZERO
    return spend / (cac * aov)


def conversion_lift(month: date, events: Iterable[MerchandisingEvent]) -> Tuple[int, Optional[str]]:
    """
    Highest lift among ``events`` dated inside ``month``.

    On equal lifts the first event in generation order names the month.
    """
    matches = events_in_month(events, month)
    if not matches:
        return 0, None
    best = max(matches, key=lambda e: e.conversion_lift_percent)
    return best.conversion_lift_percent, best.name


def _selection(events: Sequence[MerchandisingEvent], selected: Optional[Iterable[EventRef]]) -> FrozenSet[str]:
    if selected is None:
        return default_selection(events)
    return frozenset(ref.serialize() if isinstance(ref, EventKey) else ref for ref in selected)


def summarize(months: Sequence[MonthForecast]) -> ForecastTotals:
    revenue = sum((m.revenue for m in months), ZERO)
    cogs_total = sum((m.cogs_total for m in months), ZERO)
    return ForecastTotals(
        orders=sum(m.orders for m in months),
        revenue=revenue,
        cogs_total=cogs_total,
        shipping_total=sum((m.shipping_total for m in months), ZERO),
        marketing_total=sum((m.marketing_total for m in months), ZERO),
        profit=sum((m.profit for m in months), ZERO),
        cogs_percent=q1(cogs_total / revenue * HUNDRED) if revenue > 0 else q1(ZERO),
    )


# ---------------------------------------------------------------------------
# entry point
# ---------------------------------------------------------------------------


@deal.post(lambda result: len(result.months) == HORIZON_MONTHS, message="forecast must cover 12 months")
@deal.post(lambda result: all(m.orders >= 0 for m in result.months), message="orders must be >= 0")
@deal.raises(ValueError, TypeError, AttributeError)
def compute_forecast(
    inputs: BusinessInputs,
    forecast_start: date,
    selected_event_ids: Optional[Iterable[EventRef]] = None,
    *,
    assumptions: Optional[GrowthAssumptions] = None,
) -> ForecastResult:
    """
    Twelve monthly P&L records starting at ``forecast_start``'s month.

    ``selected_event_ids=None`` selects every event of the generated calendar;
    an empty collection selects none. Pure: identical arguments give
    identical results.
    """
    assumptions = assumptions if assumptions is not None else DEFAULT_ASSUMPTIONS
    start = month_start(forecast_start)
    all_events = generate_events(start)
    selection = _selection(all_events, selected_event_ids)
    selected = tuple(e for e in all_events if e.id in selection)

    months: List[MonthForecast] = []
    for i in range(HORIZON_MONTHS):
        current = add_months(start, i)
        spend = marketing_spend(i, inputs.first_month_marketing_budget, assumptions)
        base = baseline_orders(spend, cac_fraction(i, assumptions), inputs.aov)
        lift, event_name = conversion_lift(current, selected)
        orders = max(0, round_int(base * (1 + Decimal(lift) / HUNDRED)))

        revenue = q2(orders * inputs.aov)
        cogs_total = q2(orders * inputs.cogs)
        shipping_total = q2(orders * inputs.shipping_per_order)
        profit = q2(revenue - cogs_total - shipping_total - spend)

        months.append(
            MonthForecast(
                month=month_key(current),
                month_label=month_label(current),
                orders=orders,
                revenue=revenue,
                cogs_total=cogs_total,
                shipping_total=shipping_total,
                marketing_total=spend,
                profit=profit,
                conversion_lift_percent=lift,
                event_name=event_name,
            )
        )

    totals = summarize(months)
    log_kv(
        logger,
        "forecast computed",
        level=logging.DEBUG,
        start=start.isoformat(),
        selected_events=len(selected),
        revenue=str(totals.revenue),
        profit=str(totals.profit),
    )
    return ForecastResult(forecast_start=start, months=tuple(months), totals=totals, events=selected)
