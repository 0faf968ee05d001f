"""Command-line entry point for the periodic jobs.

    python -m coachstudio.jobs materialize --weeks 6
    python -m coachstudio.jobs advance

Meant to be run from cron or any external scheduler, as an alternative to the
bearer-protected HTTP triggers.
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import coachstudio.models  # noqa: F401 - register all models with Base.metadata
from coachstudio.config import get_settings
from coachstudio.database import async_session, engine, init_db
from coachstudio.errors import SchedulingError
from coachstudio.scheduling.materializer import SessionMaterializer
from coachstudio.scheduling.transitions import advance

logger = logging.getLogger(__name__)


async def run_materialize(weeks: int) -> int:
    settings = get_settings()
    tz = ZoneInfo(settings.studio_timezone)
    await init_db()
    async with async_session() as session:
        report = await SessionMaterializer(session, tz=tz).generate(
            weeks, datetime.now(timezone.utc)
        )
    await engine.dispose()

    print(
        f"Generated {report.sessions_created} session(s) over {report.weeks_generated} "
        f"week(s); {len(report.gaps)} gap(s), {len(report.errors)} error(s)"
    )
    for gap in report.gaps:
        print(
            f"  gap: booking {gap.recurring_booking_id} at {gap.start.isoformat()} ({gap.reason})"
        )
    for error in report.errors:
        print(f"  error: {error}", file=sys.stderr)
    return 1 if report.has_errors else 0


async def run_advance() -> int:
    await init_db()
    async with async_session() as session:
        completed = await advance(session, datetime.now(timezone.utc))
        await session.commit()
    await engine.dispose()
    print(f"Marked {completed} session(s) as completed")
    return 0


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="coachstudio.jobs",
        description="Run the studio's periodic scheduling jobs.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    materialize = subparsers.add_parser(
        "materialize", help="Generate sessions from active recurring bookings"
    )
    materialize.add_argument(
        "--weeks",
        type=int,
        default=settings.default_horizon_weeks,
        help=f"Horizon in weeks (default: {settings.default_horizon_weeks})",
    )
    subparsers.add_parser("advance", help="Mark finished sessions as completed")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "materialize":
        if not 1 <= args.weeks <= settings.max_horizon_weeks:
            parser.error(f"--weeks must be between 1 and {settings.max_horizon_weeks}")
        coro = run_materialize(args.weeks)
    else:
        coro = run_advance()

    try:
        return asyncio.run(coro)
    except SchedulingError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
