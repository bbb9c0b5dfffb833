from __future__ import annotations

import argparse
from datetime import date

from sellabroad.cli.commands._common import add_market_arg, month_arg, this_month
from sellabroad.forecast.calendar import applies_to_market, event_label, generate_events, month_label
from sellabroad.forecast.report import events_by_month


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("calendar", help="Merchandising events for the 12-month window.")
    p.add_argument("--start", type=month_arg, default=None, help="Forecast start month YYYY-MM (default: this month).")
    add_market_arg(p, "Only list events that apply to this market")
    p.add_argument("--ids", action="store_true", help="Print event ids (usable with forecast --exclude).")
    p.set_defaults(_fn=_run)


def _run(args: argparse.Namespace) -> int:
    start = args.start if args.start is not None else this_month()
    events = generate_events(start)
    if args.market:
        events = [e for e in events if applies_to_market(e, args.market)]

    for key, evs in events_by_month(events, start).items():
        print(month_label(date.fromisoformat(key + "-01")), flush=True)
        if not evs:
            print("  No events", flush=True)
        for e in evs:
            line = f"  {e.date.isoformat()}  {event_label(e)} +{e.conversion_lift_percent}%"
            if args.ids:
                line += f"  id={e.id}"
            print(line, flush=True)
    return 0
