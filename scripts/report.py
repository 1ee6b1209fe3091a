"""Print an attendance report from the command line (no Flask).

    python scripts/report.py --caller 1 --start 2025-01-01 --end 2025-01-31 --kind per_unit
"""

from __future__ import annotations

import argparse
import importlib

from dotenv import load_dotenv

from attendance_analytics.common.datetime_utils import parse_iso_date
from attendance_analytics.config import get_settings_module
from attendance_analytics.config.logging import configure_logging
from attendance_analytics.container import build_container
from attendance_analytics.core.enums import AggregationKind


def main() -> None:
    parser = argparse.ArgumentParser(description="Attendance report")
    parser.add_argument("--caller", type=int, required=True, help="member id whose scope is used")
    parser.add_argument("--start", type=parse_iso_date, required=True)
    parser.add_argument("--end", type=parse_iso_date, required=True)
    parser.add_argument("--kind", choices=[k.value for k in AggregationKind])
    parser.add_argument("--participant", type=int, help="only this participant's row")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(level=getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(settings=settings)
    scope = container.scope_resolver.resolve_scope(args.caller)
    rows = container.report_service.export_report_rows(
        scope,
        args.start,
        args.end,
        kind=AggregationKind(args.kind) if args.kind else None,
        participant_id=args.participant,
    )

    for row in rows:
        name = f"{row.label} ({row.nickname})" if row.nickname else row.label
        print(f"{name:<30} {row.present + row.late:>4}/{row.expected:<4} {row.rate:5.1f}%")


if __name__ == "__main__":
    main()
