from __future__ import annotations

import argparse
from typing import Sequence

from sellabroad.cli.commands import calendar_cmd, forecast_cmd, lead_cmd, shipping_cmd
from sellabroad.infra.config import get_app_config
from sellabroad.infra.logging_std import configure_logging, get_logger

logger = get_logger("sellabroad.cli")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sellabroad",
        description="SellAbroad 12-month forecast (shipping, calendar, forecast, lead).",
    )
    sub = p.add_subparsers(dest="command", required=True)

    shipping_cmd.register(sub)
    calendar_cmd.register(sub)
    forecast_cmd.register(sub)
    lead_cmd.register(sub)
    return p


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    cfg = get_app_config()
    configure_logging(level=cfg.logging.level, fmt=cfg.logging.format)

    fn = getattr(args, "_fn", None)
    if fn is None:
        parser.print_help()
        return 2

    try:
        rc = fn(args)
        if rc is None:
            return 0
        if isinstance(rc, bool):
            return 0 if rc else 1
        return int(rc)

    except KeyboardInterrupt:
        print("sellabroad: CANCELLED (KeyboardInterrupt)", flush=True)
        return 130

    except Exception as e:
        logger.exception("command failed | command=%s", getattr(args, "command", None))
        print(f"sellabroad: ERROR: {type(e).__name__}: {e}", flush=True)
        return 3
