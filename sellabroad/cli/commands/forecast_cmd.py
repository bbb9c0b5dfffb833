from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import List

from sellabroad.cli.commands._common import add_forecast_inputs, inputs_from_args, selection_for, start_from_args
from sellabroad.forecast.engine import ForecastResult, compute_forecast
from sellabroad.forecast.report import build_report, write_report
from sellabroad.infra.config import get_app_config
from sellabroad.infra.logging_std import get_logger, log_kv
from sellabroad.infra.money import fmt_money

logger = get_logger(__name__)


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("forecast", help="12-month sales and P&L forecast.")
    add_forecast_inputs(p)
    p.add_argument("--brand", default=None, help="Brand name for the report title.")
    p.add_argument("--out", type=Path, default=None, help="Write forecast.json, pl_table.csv and forecast.md here.")
    p.add_argument("--json", action="store_true", help="Print the report as JSON instead of a table.")
    p.set_defaults(_fn=_run)


def format_table(result: ForecastResult) -> str:
    header = f"{'Month':<9} {'Orders':>7} {'Revenue':>13} {'COGS':>12} {'Shipping':>11} {'Marketing':>12} {'Profit':>13}  Event"
    lines: List[str] = [header, "-" * len(header)]
    for m in result.months:
        event = f"+{m.conversion_lift_percent}% {m.event_name}" if m.event_name else "-"
        lines.append(
            f"{m.month_label:<9} {m.orders:>7} {fmt_money(m.revenue):>13} {fmt_money(m.cogs_total):>12} "
            f"{fmt_money(m.shipping_total):>11} {fmt_money(m.marketing_total):>12} {fmt_money(m.profit):>13}  {event}"
        )
    t = result.totals
    lines.append("-" * len(header))
    lines.append(
        f"{'Total':<9} {t.orders:>7} {fmt_money(t.revenue):>13} {fmt_money(t.cogs_total):>12} "
        f"{fmt_money(t.shipping_total):>11} {fmt_money(t.marketing_total):>12} {fmt_money(t.profit):>13}  "
        f"COGS {t.cogs_percent}% of revenue"
    )
    return "\n".join(lines)


def _run(args: argparse.Namespace) -> int:
    cfg = get_app_config()
    inputs = inputs_from_args(args, cfg)
    start = start_from_args(args)
    result = compute_forecast(inputs, start, selection_for(args, start), assumptions=cfg.growth)
    report = build_report(inputs, result, brand_name=args.brand, rates=cfg.shipping)

    if args.json:
        print(json.dumps(report, ensure_ascii=False, indent=2), flush=True)
    else:
        print(
            f"shipping/order=${inputs.shipping_per_order} contribution_margin/order=${inputs.contribution_margin} "
            f"({inputs.margin_percent}% margin)",
            flush=True,
        )
        print(format_table(result), flush=True)

    if args.out is not None:
        paths = write_report(report, args.out)
        log_kv(logger, "report written", outdir=str(paths.outdir))
        if not args.json:
            print(f"report: {paths.report_json} {paths.pl_csv} {paths.report_md}", flush=True)
    return 0
