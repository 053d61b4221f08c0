#!/usr/bin/env python

"""
TaskTime - Main Entry Point

Command line access to analytics, CSV export and dashboard counters.

Usage:
    python main.py init-db
    python main.py analytics --user 1 --range last-7-days
    python main.py export --user 1 --range custom --start 2026-01-01 --end 2026-01-31 -o tasks.csv
    python main.py dashboard --user 1 --period weekly
    python main.py dashboard --user 1 --overview

Requirements:
    - Python 3.11+
    - See pyproject.toml for dependencies
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from tasktime.domain.analytics import AnalyticsFilters
from tasktime.domain.errors import TaskTimeError
from tasktime.infra.config import get_settings
from tasktime.infra.db import init_db, DatabaseEngine
from tasktime.services import AnalyticsService, CsvExportService, DashboardService

logger = logging.getLogger("tasktime")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tasktime", description="Task and time tracking analytics")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create database tables")

    for name in ("analytics", "export"):
        cmd = sub.add_parser(name)
        cmd.add_argument("--user", type=int, required=True)
        cmd.add_argument("--range", dest="time_range", default=None,
                         help="today | last-7-days | last-30-days | custom")
        cmd.add_argument("--start", dest="start_date")
        cmd.add_argument("--end", dest="end_date")
        cmd.add_argument("--category", dest="category_id", type=int)
        cmd.add_argument("--priority")
        cmd.add_argument("--status")
        if name == "export":
            cmd.add_argument("-o", "--output", type=Path, help="Write CSV here instead of stdout")

    dash = sub.add_parser("dashboard")
    dash.add_argument("--user", type=int, required=True)
    dash.add_argument("--period", default="today", choices=["today", "weekly"])
    dash.add_argument("--overview", action="store_true",
                      help="Completions, hours and all-time status/priority breakdowns")

    return parser


def _filters_from_args(args) -> AnalyticsFilters:
    return AnalyticsFilters.from_query({
        "time_range": args.time_range,
        "start_date": args.start_date,
        "end_date": args.end_date,
        "category_id": args.category_id,
        "priority": args.priority,
        "status": args.status,
    })


async def run(args) -> int:
    settings = get_settings()

    try:
        if args.command == "init-db":
            await init_db(settings.get_db_url())
            print(f"Database ready: {settings.get_db_url()}")

        elif args.command == "analytics":
            service = AnalyticsService(preferences=settings.analytics)
            snapshot = await service.compute_analytics(args.user, _filters_from_args(args))
            print(snapshot.model_dump_json(by_alias=True, indent=2))

        elif args.command == "export":
            exporter = CsvExportService(preferences=settings.analytics)
            csv_content = await exporter.export_csv(args.user, _filters_from_args(args))
            if args.output:
                args.output.parent.mkdir(parents=True, exist_ok=True)
                with open(args.output, 'w', encoding='utf-8') as f:
                    f.write(csv_content)
                print(f"Export saved to: {args.output.absolute()}")
            else:
                print(csv_content)

        elif args.command == "dashboard":
            service = DashboardService()
            if args.overview:
                stats = await service.get_dashboard(args.user)
            else:
                stats = await service.get_dashboard_stats(args.user, args.period)
            print(stats.model_dump_json(by_alias=True, indent=2))

    except TaskTimeError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    finally:
        await DatabaseEngine.reset_instance()

    return 0


def main():
    """Main entry point"""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    args = build_parser().parse_args()
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
