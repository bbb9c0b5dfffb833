"""
sellabroad.forecast

Shipping tariff, merchandising calendar and the 12-month P&L engine.
Everything here is pure: same inputs, same output.
"""
from .shipping import compute_effective_rate, compute_shipping_cost, tier_rate
from .calendar import (
    EventKey,
    MerchandisingEvent,
    Scope,
    applies_to_market,
    default_selection,
    event_label,
    events_in_month,
    generate_events,
    toggle_event,
)
from .engine import (
    BusinessInputs,
    ForecastResult,
    ForecastTotals,
    MonthForecast,
    compute_forecast,
)

__all__ = [
    "compute_effective_rate",
    "compute_shipping_cost",
    "tier_rate",
    "EventKey",
    "MerchandisingEvent",
    "Scope",
    "applies_to_market",
    "default_selection",
    "event_label",
    "events_in_month",
    "generate_events",
    "toggle_event",
    "BusinessInputs",
    "ForecastResult",
    "ForecastTotals",
    "MonthForecast",
    "compute_forecast",
]
