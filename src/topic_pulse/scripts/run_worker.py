# src/topic_pulse/scripts/run_worker.py
"""Run the score recomputation worker."""
from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

from sqlalchemy.exc import SQLAlchemyError

from topic_pulse.core.logging import configure_logging
from topic_pulse.db.session import create_tables
from topic_pulse.services.score_worker import ScoreUpdateWorker

logger = logging.getLogger(__name__)


async def _serve(worker: ScoreUpdateWorker) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    await worker.start()
    logger.info("Score worker started")
    await stop.wait()
    await worker.stop()
    logger.info("Score worker stopped")


async def _drain(worker: ScoreUpdateWorker) -> int:
    total = 0
    while processed := await worker.run_once():
        total += processed
        if worker.retries_pending:
            break
    return total


def main() -> None:
    parser = argparse.ArgumentParser(description="Recompute topic scores from queued jobs")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Process every pending job and exit instead of polling forever.",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before starting (development databases only).",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args()

    configure_logging(args.log_level)
    worker = ScoreUpdateWorker()
    try:
        if args.create_tables:
            create_tables()
        if args.once:
            total = asyncio.run(_drain(worker))
            logger.info("Processed %d score jobs", total)
        else:
            asyncio.run(_serve(worker))
    except SQLAlchemyError as exc:
        logger.error("Score worker aborted: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
