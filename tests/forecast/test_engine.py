from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from hypothesis import given, settings, strategies as st

from sellabroad.forecast.calendar import EventKey, MerchandisingEvent, Scope, generate_events
from sellabroad.forecast.engine import (
    BusinessInputs,
    baseline_orders,
    cac_fraction,
    compute_forecast,
    conversion_lift,
    marketing_spend,
)
from sellabroad.infra.config import GrowthAssumptions

NOV_2026 = date(2026, 11, 1)


def _inputs(aov="50", cogs="15", weight="0.5", budget="1000") -> BusinessInputs:
    return BusinessInputs.build(aov, cogs, weight, budget)


def _ids(start: date, *names: str) -> frozenset:
    return frozenset(e.id for e in generate_events(start) if e.name in names)


def test_build_prices_shipping_and_clamps() -> None:
    inputs = BusinessInputs.build(50, 15, 0.5, -250)
    assert inputs.shipping_per_order == Decimal("5.42")
    assert inputs.first_month_marketing_budget == Decimal("0")
    assert inputs.contribution_margin == Decimal("29.58")
    assert inputs.margin_percent == Decimal("59.2")


def test_concrete_first_month() -> None:
    result = compute_forecast(_inputs(), date(2026, 3, 1), frozenset())
    m0 = result.months[0]
    assert m0.month == "2026-03"
    assert m0.marketing_total == Decimal("1000.00")
    assert m0.orders == 57
    assert m0.revenue == Decimal("2850.00")
    assert m0.cogs_total == Decimal("855.00")
    assert m0.shipping_total == Decimal("308.94")
    assert m0.profit == Decimal("686.06")
    assert m0.conversion_lift_percent == 0
    assert m0.event_name is None


def test_second_and_third_month_follow_growth_and_cac_decay() -> None:
    months = compute_forecast(_inputs(), date(2026, 3, 1), frozenset()).months
    assert months[1].marketing_total == Decimal("1050.00")
    assert months[1].orders == 64          # 1050 / (0.33 * 50) = 63.63
    assert months[2].marketing_total == Decimal("1102.50")
    assert months[2].orders == 74          # 1102.50 / 15 = 73.5, half rounds up


def test_twelve_consecutive_months() -> None:
    result = compute_forecast(_inputs(), NOV_2026)
    assert len(result.months) == 12
    assert [m.month for m in result.months[:3]] == ["2026-11", "2026-12", "2027-01"]
    assert result.months[-1].month == "2027-10"
    assert result.months[0].month_label == "Nov 2026"
    assert result.forecast_start == NOV_2026


def test_mid_month_start_matches_first_of_month() -> None:
    assert compute_forecast(_inputs(), date(2026, 11, 19)) == compute_forecast(_inputs(), NOV_2026)


def test_zero_budget_zeroes_everything() -> None:
    result = compute_forecast(_inputs(budget="0"), NOV_2026)
    for m in result.months:
        assert m.marketing_total == 0
        assert m.orders == 0
        assert m.revenue == 0
        assert m.cogs_total == 0
        assert m.shipping_total == 0
        assert m.profit == 0
    assert result.totals.revenue == 0
    assert result.totals.cogs_percent == 0


def test_empty_selection_never_lifts() -> None:
    result = compute_forecast(_inputs(), NOV_2026, set())
    assert result.events == ()
    assert all(m.conversion_lift_percent == 0 and m.event_name is None for m in result.months)


def test_default_selection_is_every_event() -> None:
    result = compute_forecast(_inputs(), NOV_2026)
    assert len(result.events) == len(generate_events(NOV_2026))
    by_month = {m.month: m for m in result.months}
    assert (by_month["2026-11"].conversion_lift_percent, by_month["2026-11"].event_name) == (12, "Black Friday")
    assert (by_month["2026-12"].conversion_lift_percent, by_month["2026-12"].event_name) == (12, "Christmas")
    assert (by_month["2027-01"].conversion_lift_percent, by_month["2027-01"].event_name) == (12, "Boxing Day")
    assert (by_month["2027-04"].conversion_lift_percent, by_month["2027-04"].event_name) == (18, "Ramadan / Eid")


def test_lift_scales_orders() -> None:
    result = compute_forecast(_inputs(), NOV_2026, _ids(NOV_2026, "Black Friday"))
    m0 = result.months[0]
    assert m0.conversion_lift_percent == 12
    assert m0.orders == 64  # 57.142857 * 1.12 = 64
    assert m0.revenue == Decimal("3200.00")
    assert all(m.conversion_lift_percent == 0 for m in result.months[1:])


def test_tie_goes_to_first_event_in_generation_order() -> None:
    # Boxing Day (UK/US/Canada) and UAE National Day both lift December by 10%
    selection = _ids(NOV_2026, "UAE National Day", "Boxing Day")
    december = compute_forecast(_inputs(), NOV_2026, selection).months[1]
    assert december.conversion_lift_percent == 10
    assert december.event_name == "Boxing Day"


def test_selection_accepts_event_keys() -> None:
    keys = [e.key for e in generate_events(NOV_2026) if e.name == "Black Friday"]
    assert compute_forecast(_inputs(), NOV_2026, keys) == compute_forecast(
        _inputs(), NOV_2026, _ids(NOV_2026, "Black Friday")
    )


def test_unknown_ids_are_ignored() -> None:
    result = compute_forecast(_inputs(), NOV_2026, {"not-an-id"})
    assert result.events == ()


def test_boundary_event_on_last_day_counts_first_of_next_does_not() -> None:
    march_end = MerchandisingEvent(EventKey(Scope.GLOBAL, (), "Late", date(2026, 3, 31)), 9)
    april_first = MerchandisingEvent(EventKey(Scope.GLOBAL, (), "Early", date(2026, 4, 1)), 20)
    assert conversion_lift(date(2026, 3, 1), [march_end, april_first]) == (9, "Late")
    assert conversion_lift(date(2026, 4, 1), [march_end, april_first]) == (20, "Early")
    assert conversion_lift(date(2026, 5, 1), [march_end, april_first]) == (0, None)


def test_non_positive_aov_gives_zero_orders_and_loss() -> None:
    result = compute_forecast(_inputs(aov="0"), NOV_2026)
    m0 = result.months[0]
    assert m0.orders == 0
    assert m0.profit == Decimal("-1000.00")


def test_profit_may_be_negative() -> None:
    result = compute_forecast(_inputs(aov="10", cogs="9", weight="1"), NOV_2026, frozenset())
    assert all(m.profit < 0 for m in result.months)
    assert result.totals.profit < 0


def test_steps() -> None:
    assert marketing_spend(0, Decimal("1000")) == Decimal("1000.00")
    assert marketing_spend(11, Decimal("1000")) == Decimal("1710.34")
    assert marketing_spend(3, Decimal("-5")) == Decimal("0.00")
    assert cac_fraction(0) == Decimal("0.35")
    assert cac_fraction(4) == Decimal("0.25")
    assert cac_fraction(40) == Decimal("0.25")
    assert baseline_orders(Decimal("100"), Decimal("0"), Decimal("50")) == 0
    assert baseline_orders(Decimal("100"), Decimal("0.25"), Decimal("0")) == 0


def test_custom_assumptions() -> None:
    flat = GrowthAssumptions(monthly_growth_factor="1", cac_percents=(50,))
    result = compute_forecast(_inputs(budget="500"), NOV_2026, frozenset(), assumptions=flat)
    assert {m.marketing_total for m in result.months} == {Decimal("500.00")}
    assert {m.orders for m in result.months} == {20}


def test_totals_and_cogs_percent() -> None:
    result = compute_forecast(_inputs(), NOV_2026)
    assert result.totals.cogs_percent == Decimal("30.0")
    assert result.totals.orders == sum(m.orders for m in result.months)


def test_repeat_calls_are_identical() -> None:
    a = compute_forecast(_inputs(), NOV_2026, _ids(NOV_2026, "Christmas", "Black Friday"))
    b = compute_forecast(_inputs(), NOV_2026, _ids(NOV_2026, "Black Friday", "Christmas"))
    assert a == b


_money = st.decimals(min_value=Decimal("0"), max_value=Decimal("5000"), places=2, allow_nan=False, allow_infinity=False)
_start = st.builds(date, st.integers(min_value=2020, max_value=2035), st.integers(min_value=1, max_value=12), st.just(1))


@settings(max_examples=60)
@given(aov=_money, cogs=_money, weight=st.decimals(min_value=Decimal("0"), max_value=Decimal("30"), places=2), budget=_money, start=_start)
def test_totals_equal_sum_of_months_exactly(aov, cogs, weight, budget, start) -> None:
    result = compute_forecast(BusinessInputs.build(aov, cogs, weight, budget), start)
    months = result.months
    t = result.totals
    assert sum(m.revenue for m in months) == t.revenue
    assert sum(m.cogs_total for m in months) == t.cogs_total
    assert sum(m.shipping_total for m in months) == t.shipping_total
    assert sum(m.marketing_total for m in months) == t.marketing_total
    assert sum(m.profit for m in months) == t.profit
    for m in months:
        assert m.orders >= 0
        assert m.revenue == m.revenue.quantize(Decimal("0.01"))
        assert m.profit == m.revenue - m.cogs_total - m.shipping_total - m.marketing_total


def test_very_large_budget_still_forecasts() -> None:
    result = compute_forecast(_inputs(budget="1e26"), NOV_2026, frozenset())
    assert result.months[0].marketing_total == Decimal("1e26")
    assert result.months[0].orders > 0
    assert result.totals.revenue > 0
