from __future__ import annotations

import argparse

from sellabroad.cli.commands._common import decimal_arg
from sellabroad.forecast.shipping import compute_effective_rate, compute_shipping_cost
from sellabroad.infra.config import get_app_config


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("shipping", help="Tiered shipping cost for a parcel weight.")
    p.add_argument("--weight", type=decimal_arg, required=True, help="Parcel weight (kg).")
    p.set_defaults(_fn=_run)


def _run(args: argparse.Namespace) -> int:
    rates = get_app_config().shipping
    cost = compute_shipping_cost(args.weight, rates)
    rate = compute_effective_rate(args.weight, rates)
    print(f"weight_kg={args.weight} shipping_per_order=${cost} effective_rate_per_kg=${rate}", flush=True)
    return 0
