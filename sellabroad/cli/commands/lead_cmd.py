from __future__ import annotations

import argparse

from sellabroad.cli.commands._common import add_forecast_inputs, inputs_from_args, selection_for, start_from_args
from sellabroad.forecast.engine import compute_forecast
from sellabroad.forecast.report import forecast_summary
from sellabroad.infra.config import get_app_config
from sellabroad.integration.lead_capture import LeadCaptureData, LeadCaptureError, submit_forecast_lead


def register(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("lead", help="Submit contact details with the forecast summary.")
    add_forecast_inputs(p)
    p.add_argument("--name", required=True)
    p.add_argument("--email", required=True)
    p.add_argument("--phone", required=True)
    p.add_argument("--company", required=True)
    p.add_argument("--brand", default=None)
    p.set_defaults(_fn=_run)


def _run(args: argparse.Namespace) -> int:
    cfg = get_app_config()
    inputs = inputs_from_args(args, cfg)
    start = start_from_args(args)
    result = compute_forecast(inputs, start, selection_for(args, start), assumptions=cfg.growth)

    data = LeadCaptureData(
        name=args.name,
        email=args.email,
        phone=args.phone,
        company=args.company,
        brand_name=args.brand,
        forecast_summary=forecast_summary(result, inputs),
    )
    try:
        resp = submit_forecast_lead(data, settings=cfg.lead_capture)
    except LeadCaptureError as exc:
        print(f"lead: FAILED: {exc}", flush=True)
        return 1
    print(f"lead: OK id={resp.id} success={resp.success}", flush=True)
    return 0
