"""
Views over a computed forecast for the chart, the P&L table, the document
export and the lead-capture summary. Nothing here changes a number; it only
reshapes and formats what the engine produced.
"""
from __future__ import annotations

import csv
import json
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from sellabroad.forecast.calendar import (
    HORIZON_MONTHS,
    MerchandisingEvent,
    add_months,
    event_label,
    month_key,
    month_label,
    month_start,
)
from sellabroad.forecast.engine import BusinessInputs, ForecastResult
from sellabroad.forecast.shipping import compute_effective_rate
from sellabroad.infra.config import ShippingRates
from sellabroad.infra.money import fmt_amount

PL_COLUMNS = (
    "month",
    "month_label",
    "orders",
    "revenue",
    "cogs_total",
    "shipping_total",
    "marketing_total",
    "profit",
    "conversion_lift_percent",
    "event_name",
)


@dataclass(frozen=True, slots=True)
class InputSummary:
    aov: Decimal
    cogs: Decimal
    product_weight_kg: Decimal
    shipping_per_order: Decimal
    effective_rate_per_kg: Decimal
    first_month_marketing_budget: Decimal
    contribution_margin: Decimal
    margin_percent: Decimal


@dataclass(frozen=True)
class ReportPaths:
    outdir: Path
    report_json: Path
    pl_csv: Path
    report_md: Path

    @classmethod
    def under(cls, outdir: Path) -> "ReportPaths":
        outdir = Path(outdir)
        return cls(
            outdir=outdir,
            report_json=outdir / "forecast.json",
            pl_csv=outdir / "pl_table.csv",
            report_md=outdir / "forecast.md",
        )


def _money(v: Decimal) -> str:
    return f"{v:.2f}"


def _plain(v: Decimal) -> str:
    return format(v.normalize(), "f")


def input_summary(inputs: BusinessInputs, rates: Optional[ShippingRates] = None) -> InputSummary:
    return InputSummary(
        aov=inputs.aov,
        cogs=inputs.cogs,
        product_weight_kg=inputs.product_weight_kg,
        shipping_per_order=inputs.shipping_per_order,
        effective_rate_per_kg=compute_effective_rate(inputs.product_weight_kg, rates),
        first_month_marketing_budget=inputs.first_month_marketing_budget,
        contribution_margin=inputs.contribution_margin,
        margin_percent=inputs.margin_percent,
    )


def chart_series(result: ForecastResult) -> Dict[str, List[Any]]:
    """Series for the revenue/profit/costs/marketing line chart."""
    return {
        "labels": [m.month_label for m in result.months],
        "revenue": [m.revenue for m in result.months],
        "profit": [m.profit for m in result.months],
        "costs": [m.cogs_total + m.shipping_total for m in result.months],
        "marketing": [m.marketing_total for m in result.months],
    }


def pl_rows(result: ForecastResult) -> List[Dict[str, Any]]:
    return [
        {
            "month": m.month_label,
            "revenue": m.revenue,
            "cogs": m.cogs_total,
            "shipping": m.shipping_total,
            "marketing": m.marketing_total,
            "profit": m.profit,
            "is_event_month": m.is_event_month,
        }
        for m in result.months
    ]


def events_by_month(events: Iterable[MerchandisingEvent], forecast_start: date) -> Dict[str, List[MerchandisingEvent]]:
    """All 12 window months as keys (in order), each with its events in generation order."""
    start = month_start(forecast_start)
    grouped: Dict[str, List[MerchandisingEvent]] = {
        month_key(add_months(start, i)): [] for i in range(HORIZON_MONTHS)
    }
    for e in events:
        bucket = grouped.get(month_key(e.date))
        if bucket is not None:
            bucket.append(e)
    return grouped


def forecast_summary(result: ForecastResult, inputs: BusinessInputs) -> str:
    """One-line summary sent along with a captured lead."""
    t = result.totals
    return f"12-mo revenue: ${fmt_amount(t.revenue)}, profit: ${fmt_amount(t.profit)}, AOV: ${_plain(inputs.aov)}"


def build_report(
    inputs: BusinessInputs,
    result: ForecastResult,
    *,
    brand_name: Optional[str] = None,
    rates: Optional[ShippingRates] = None,
) -> Dict[str, Any]:
    """JSON-safe document: echoed inputs, selected events by month, monthly P&L and totals."""
    s = input_summary(inputs, rates)
    t = result.totals
    grouped = events_by_month(result.events, result.forecast_start)
    return {
        "brand_name": (brand_name or "").strip() or None,
        "forecast_start": result.forecast_start.isoformat(),
        "inputs": {
            "aov": _money(s.aov),
            "cogs": _money(s.cogs),
            "product_weight_kg": _plain(s.product_weight_kg),
            "shipping_per_order": _money(s.shipping_per_order),
            "effective_rate_per_kg": _money(s.effective_rate_per_kg),
            "first_month_marketing_budget": _money(s.first_month_marketing_budget),
            "contribution_margin": _money(s.contribution_margin),
            "margin_percent": str(s.margin_percent),
        },
        "events_by_month": [
            {
                "month": key,
                "month_label": month_label(date.fromisoformat(key + "-01")),
                "events": [
                    {
                        "id": e.id,
                        "label": event_label(e),
                        "date": e.date.isoformat(),
                        "conversion_lift_percent": e.conversion_lift_percent,
                    }
                    for e in evs
                ],
            }
            for key, evs in grouped.items()
        ],
        "months": [
            {
                "month": m.month,
                "month_label": m.month_label,
                "orders": m.orders,
                "revenue": _money(m.revenue),
                "cogs_total": _money(m.cogs_total),
                "shipping_total": _money(m.shipping_total),
                "marketing_total": _money(m.marketing_total),
                "profit": _money(m.profit),
                "conversion_lift_percent": m.conversion_lift_percent,
                "event_name": m.event_name,
            }
            for m in result.months
        ],
        "totals": {
            "orders": t.orders,
            "revenue": _money(t.revenue),
            "cogs_total": _money(t.cogs_total),
            "cogs_percent": str(t.cogs_percent),
            "shipping_total": _money(t.shipping_total),
            "marketing_total": _money(t.marketing_total),
            "profit": _money(t.profit),
        },
        "summary": forecast_summary(result, inputs),
    }


def render_markdown(report: Dict[str, Any]) -> str:
    brand = report.get("brand_name")
    title = f"12 Month Forecast For {brand}" if brand else "12 Month Forecast"
    inp = report["inputs"]
    lines: List[str] = [f"# {title}", "", f"Forecast start: {report['forecast_start']}", ""]

    lines += [
        "## 1. Business inputs",
        "",
        "| AOV ($) | COGS ($) | Weight (kg) | Shipping/order ($) | Marketing M1 ($) | Contribution margin/order ($) |",
        "|---|---|---|---|---|---|",
        f"| {inp['aov']} | {inp['cogs']} | {inp['product_weight_kg']} | {inp['shipping_per_order']} "
        f"| {inp['first_month_marketing_budget']} | {inp['contribution_margin']} |",
        "",
        "## 2. Merchandising events",
        "",
    ]
    for bucket in report["events_by_month"]:
        lines.append(f"- **{bucket['month_label']}**")
        if not bucket["events"]:
            lines.append("  - No events")
        for ev in bucket["events"]:
            lines.append(f"  - {ev['label']} (+{ev['conversion_lift_percent']}%)")
    lines.append("")

    lines += [
        "## 3. P&L (12 months)",
        "",
        "| Month | Orders | Revenue | COGS | Shipping | Marketing | Profit | Event |",
        "|---|---|---|---|---|---|---|---|",
    ]
    for m in report["months"]:
        event = f"+{m['conversion_lift_percent']}% {m['event_name']}" if m["event_name"] else "-"
        lines.append(
            f"| {m['month_label']} | {m['orders']} | {m['revenue']} | {m['cogs_total']} | {m['shipping_total']} "
            f"| {m['marketing_total']} | {m['profit']} | {event} |"
        )
    t = report["totals"]
    lines.append(
        f"| **Total** | {t['orders']} | {t['revenue']} | {t['cogs_total']} ({t['cogs_percent']}%) "
        f"| {t['shipping_total']} | {t['marketing_total']} | {t['profit']} | |"
    )
    lines.append("")
    return "\n".join(lines)


def write_report(report: Dict[str, Any], outdir: Path) -> ReportPaths:
    paths = ReportPaths.under(outdir)
    paths.outdir.mkdir(parents=True, exist_ok=True)

    paths.report_json.write_text(json.dumps(report, ensure_ascii=False, indent=2), encoding="utf-8")

    with paths.pl_csv.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=list(PL_COLUMNS))
        w.writeheader()
        for m in report["months"]:
            w.writerow({k: ("" if m.get(k) is None else m.get(k)) for k in PL_COLUMNS})

    paths.report_md.write_text(render_markdown(report), encoding="utf-8")
    return paths
