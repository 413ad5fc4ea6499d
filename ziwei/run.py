"""
CLI wrapper for chart computation.

Usage:
    python -m ziwei.run --birth-date YYYY-MM-DD --gender GENDER \
        (--hour-branch N | --birth-time HH:MM [--latitude LAT --longitude LON] [--utc-offset OFFSET]) \
        [--year YYYY] [--decade PALACE_INDEX] [--leap-month-rule same|split] [--verbose]

Prints the chart, decade cycles, current decade summary and the decade's
activations as JSON.
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

# Allow running as a plain script from the repo root
sys.path.insert(0, str(Path(__file__).parent.parent))

from ziwei.activations import get_cycle_activations
from ziwei.birth_time import resolve_hour_branch
from ziwei.chart import LEAP_MONTH_RULES, compute_chart
from ziwei.decade_cycles import compute_decade_cycles, current_decade_summary, flow_year_palace
from ziwei.errors import ZiweiError

logger = logging.getLogger("ziwei.run")


def build_report(birth_date, hour_branch_index, gender, year, decade=None,
                 leap_month_rule="same") -> dict:
    chart = compute_chart(birth_date, hour_branch_index, gender, leap_month_rule=leap_month_rule)
    summary = current_decade_summary(chart, year)

    if decade is None and summary is not None:
        decade = summary.cycle.palace_index
    activations = get_cycle_activations(chart, decade) if decade is not None else ()

    return {
        "chart": chart.to_dict(),
        "decade_cycles": [c.to_dict() for c in compute_decade_cycles(chart)],
        "current_decade": summary.to_dict() if summary else None,
        "flow_year": {"year": year, "palace_index": flow_year_palace(year)},
        "activations": {
            "decade_palace_index": decade,
            "results": [a.to_dict() for a in activations],
        },
    }


def main(argv=None):
    parser = argparse.ArgumentParser(description="Compute a Zi Wei Dou Shu natal chart.")
    parser.add_argument("--birth-date", required=True, dest="birth_date")
    parser.add_argument("--gender", required=True, choices=["male", "female"])
    hour = parser.add_mutually_exclusive_group(required=True)
    hour.add_argument("--hour-branch", dest="hour_branch", type=int, choices=range(12),
                      metavar="0-11", help="hour branch index, 子 = 0")
    hour.add_argument("--birth-time", dest="birth_time", help="local clock time HH:MM")
    parser.add_argument("--latitude", type=float, default=None)
    parser.add_argument("--longitude", type=float, default=None)
    parser.add_argument("--utc-offset", dest="utc_offset", type=float, default=None)
    parser.add_argument("--year", type=int, default=datetime.now().year,
                        help="calendar year for the current decade and flow year")
    parser.add_argument("--decade", type=int, choices=range(12), metavar="0-11", default=None,
                        help="decade palace index for activations (default: current decade)")
    parser.add_argument("--leap-month-rule", dest="leap_month_rule", default="same",
                        choices=LEAP_MONTH_RULES)
    parser.add_argument("--verbose", "-v", action="store_true")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        birth_date = args.birth_date
        hour_branch = args.hour_branch
        resolved = None
        if hour_branch is None:
            resolved = resolve_hour_branch(
                args.birth_date, args.birth_time,
                latitude=args.latitude, longitude=args.longitude,
                utc_offset=args.utc_offset,
            )
            birth_date = resolved.birth_date
            hour_branch = resolved.hour_branch_index

        result = build_report(birth_date, hour_branch, args.gender, args.year,
                              decade=args.decade, leap_month_rule=args.leap_month_rule)
    except ZiweiError as exc:
        logger.debug("chart computation failed", exc_info=True)
        parser.error(str(exc))

    if resolved is not None:
        result["birth_time"] = resolved.to_dict()

    print(json.dumps(result, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
