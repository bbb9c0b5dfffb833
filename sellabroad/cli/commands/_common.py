from __future__ import annotations

import argparse
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from sellabroad.forecast.calendar import MerchandisingEvent, default_selection, generate_events
from sellabroad.forecast.engine import BusinessInputs
from sellabroad.infra.config import AppConfig
from sellabroad.forecast.markets import MARKET_LABELS
from sellabroad.infra.money import as_decimal


def decimal_arg(raw: str) -> Decimal:
    try:
        d = as_decimal(raw, "number")
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a number: {raw!r}") from exc
    if not d.is_finite():
        raise argparse.ArgumentTypeError(f"not a finite number: {raw!r}")
    return d


def month_arg(raw: str) -> date:
    """Accept YYYY-MM or YYYY-MM-DD; always the first of that month."""
    text = raw.strip()
    try:
        d = date.fromisoformat(text + "-01" if len(text) == 7 else text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM, got {raw!r}") from exc
    return date(d.year, d.month, 1)


def add_market_arg(p: argparse.ArgumentParser, help_prefix: str) -> None:
    labels = ", ".join(f"{code} = {label}" for code, label in MARKET_LABELS.items())
    p.add_argument("--market", choices=list(MARKET_LABELS), default=None, help=f"{help_prefix} ({labels}).")


def this_month() -> date:
    today = date.today()
    return date(today.year, today.month, 1)


def add_forecast_inputs(p: argparse.ArgumentParser) -> None:
    p.add_argument("--aov", type=decimal_arg, required=True, help="Average order value ($).")
    p.add_argument("--cogs", type=decimal_arg, required=True, help="Cost of goods sold per order ($).")
    p.add_argument("--weight", type=decimal_arg, default=Decimal("0"), help="Product weight (kg).")
    p.add_argument("--budget", type=decimal_arg, default=Decimal("0"), help="First-month marketing budget ($).")
    p.add_argument("--start", type=month_arg, default=None, help="Forecast start month YYYY-MM (default: this month).")
    add_market_arg(p, "Only pre-select events that apply to this market")
    p.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="ID_OR_NAME",
        help="Deselect an event by id or by name (repeatable).",
    )
    p.add_argument("--no-events", action="store_true", help="Ignore the merchandising calendar.")


def inputs_from_args(args: argparse.Namespace, cfg: AppConfig) -> BusinessInputs:
    return BusinessInputs.build(args.aov, args.cogs, args.weight, args.budget, rates=cfg.shipping)


def start_from_args(args: argparse.Namespace) -> date:
    return args.start if args.start is not None else this_month()


def selection_from_args(
    events: Sequence[MerchandisingEvent],
    *,
    market: Optional[str],
    exclude: Iterable[str],
    no_events: bool,
) -> frozenset:
    if no_events:
        return frozenset()
    excluded = set(exclude)
    chosen = default_selection(events, market)
    return frozenset(e.id for e in events if e.id in chosen and e.id not in excluded and e.name not in excluded)


def selection_for(args: argparse.Namespace, start: date) -> frozenset:
    return selection_from_args(
        generate_events(start),
        market=args.market,
        exclude=args.exclude,
        no_events=args.no_events,
    )
