from __future__ import annotations

import argparse
import json
import os
import sys

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


def load_env_file(env_path: str) -> None:
    if not os.path.exists(env_path):
        return
    with open(env_path, "r", encoding="utf-8") as env_file:
        for line in env_file:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            os.environ.setdefault(key, value)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Export the master report as CSV or printable HTML.",
    )
    parser.add_argument(
        "--env-file",
        default=os.path.join(PROJECT_ROOT, ".env"),
        help="Path to .env file.",
    )
    parser.add_argument(
        "--input",
        default=None,
        help="Read the report tree from this JSON file instead of the master report API.",
    )
    parser.add_argument("--group-id", type=int, default=None, help="Limit the report to one group.")
    parser.add_argument(
        "--granularity",
        default="quarterly",
        choices=["monthly", "quarterly", "annual"],
        help="Period granularity for the dynamic columns.",
    )
    parser.add_argument("--format", default="csv", choices=["csv", "html", "json"], help="Output format.")
    parser.add_argument("--as-of", default=None, help="Reference date (YYYY-MM-DD); defaults to today.")
    parser.add_argument("--output", default=None, help="Output path; defaults to stdout.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    load_env_file(os.path.abspath(args.env_file))

    from src.api.dependencies import get_master_report_service
    from src.core.config import get_settings
    from src.core.logging import configure_logging
    from src.exports.csv_export import csv_filename, render_csv
    from src.exports.print_html import render_print_html
    from src.models.master_report import MasterReport
    from src.shared.time import parse_as_of

    configure_logging(get_settings().log_level)
    service = get_master_report_service()
    reference_date = parse_as_of(args.as_of)

    if args.input:
        with open(args.input, "r", encoding="utf-8") as input_file:
            report = MasterReport.model_validate(json.load(input_file))
    else:
        report = service.get_report(args.group_id)
    table = service.build_table(report, args.granularity, reference_date)

    if args.format == "csv":
        content = render_csv(table)
        output = args.output or csv_filename(args.granularity, args.group_id)
        with open(output, "wb") as output_file:
            output_file.write(content)
        print(f"wrote {len(table.rows)} rows to {output}")
        return

    if args.format == "html":
        text = render_print_html(table, report, args.group_id)
    else:
        text = json.dumps(table.to_payload(), indent=2)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as output_file:
            output_file.write(text)
        print(f"wrote {len(table.rows)} rows to {args.output}")
    else:
        print(text)


if __name__ == "__main__":
    main()
