"""
Maintenance command line for the system log.

Meant to be run from cron (daily for ``run``); weekly retention and storage
analysis happen automatically on the configured maintenance day.

Usage:
    eventlog-maintenance run
    eventlog-maintenance retention
    eventlog-maintenance monitor
    eventlog-maintenance optimize
    eventlog-maintenance cleanup --days 30
"""

import argparse
import asyncio
import json
from typing import Any, Dict, List, Optional

from eventlog.core.config import get_settings
from eventlog.core.logging import get_logger, setup_logging
from eventlog.db import session as db_session
from eventlog.retention.maintenance import LogMaintenanceService
from eventlog.services.event_recorder import EventRecorder
from eventlog.services.query_service import LogQueryService

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="eventlog-maintenance",
        description="Run system log maintenance tasks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  run:       Daily entry point (growth monitoring, weekly tasks on the maintenance day)
  retention: Execute every retention policy now
  monitor:   Check the last day against growth thresholds
  optimize:  Analyze the last week and suggest storage savings
  cleanup:   Delete non-CRITICAL logs older than --days
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("run", help="Daily maintenance entry point")
    subparsers.add_parser("retention", help="Execute retention policies")
    subparsers.add_parser("monitor", help="Monitor log growth")
    subparsers.add_parser("optimize", help="Analyze log storage")

    cleanup = subparsers.add_parser("cleanup", help="Delete old non-CRITICAL logs")
    cleanup.add_argument(
        "--days",
        type=int,
        default=90,
        help=(
            f"Retention period in days ({settings.cleanup_min_days}"
            f"-{settings.cleanup_max_days}, default 90)"
        ),
    )

    return parser


def build_service() -> LogMaintenanceService:
    """Maintenance service wired to the configured database."""
    store = db_session.get_log_store()
    return LogMaintenanceService(store, EventRecorder(store), LogQueryService(store))


async def run_command(
    service: LogMaintenanceService, command: str, days: Optional[int] = None
) -> Dict[str, Any]:
    """Execute one command and return a JSON-ready summary."""
    if command == "run":
        return {"tasks_executed": await service.run_maintenance()}
    if command == "retention":
        stats = await service.execute_retention_policies()
        return stats.model_dump(mode="json")
    if command == "monitor":
        alerts = await service.monitor_log_growth()
        return {"alerts": [alert.model_dump(mode="json") for alert in alerts]}
    if command == "optimize":
        recommendations = await service.optimize_log_storage()
        return {"recommendations": [r.model_dump(mode="json") for r in recommendations]}
    if command == "cleanup":
        retention_days = 90 if days is None else days
        deleted = await service.cleanup_old_logs(retention_days)
        return {"deleted_count": deleted, "retention_days": retention_days}

    raise ValueError(f"Unknown command: {command}")


async def _main(args: argparse.Namespace) -> int:
    db_session.init_db()

    try:
        summary = await run_command(build_service(), args.command, getattr(args, "days", None))
    except Exception as e:
        logger.error("maintenance_command_failed", command=args.command, error=str(e))
        print(json.dumps({"command": args.command, "success": False, "error": str(e)}))
        return 1
    finally:
        await db_session.close_db()

    print(json.dumps({"command": args.command, "success": True, "result": summary}))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Console script entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    if args.command == "cleanup" and not (
        settings.cleanup_min_days <= args.days <= settings.cleanup_max_days
    ):
        parser.error(
            f"--days must be between {settings.cleanup_min_days} and {settings.cleanup_max_days}"
        )

    setup_logging()
    return asyncio.run(_main(args))


if __name__ == "__main__":
    raise SystemExit(main())
