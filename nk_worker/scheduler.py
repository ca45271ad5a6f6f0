"""
Scheduled worker runs.

APScheduler interval job that runs the Provisioning Worker every
`interval_minutes`. Runs are single-flight within one scheduler process
(max_instances=1, coalesce=True); a run that overruns its interval makes
the missed runs collapse into one.
"""

from typing import Callable

from apscheduler.schedulers.blocking import BlockingScheduler

from nk_core.logging_config import setup_logging
from nk_worker.worker import ProvisioningWorker

logger = setup_logging(__name__)

JOB_ID = "process_negative_keywords"


def run_worker_job(worker_factory: Callable[[], ProvisioningWorker]) -> None:
    """One scheduled run; failures are logged and the schedule keeps going."""
    logger.info("Scheduled worker run starting...")
    try:
        summary = worker_factory().run()
        logger.info(
            f"Scheduled worker run complete: active={summary.active}, "
            f"failed={summary.failed}, aborted={summary.aborted}"
        )
    except Exception as e:
        logger.error(f"Scheduled worker run failed: {e}")


def build_scheduler(
    worker_factory: Callable[[], ProvisioningWorker],
    interval_minutes: int,
    scheduler: BlockingScheduler = None,
) -> BlockingScheduler:
    """Configure (but do not start) the interval job."""
    scheduler = scheduler or BlockingScheduler()
    scheduler.add_job(
        run_worker_job,
        "interval",
        args=[worker_factory],
        minutes=interval_minutes,
        id=JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    return scheduler


def start_scheduler(worker_factory: Callable[[], ProvisioningWorker], interval_minutes: int) -> None:
    """Run now, then every interval_minutes until interrupted."""
    run_worker_job(worker_factory)

    scheduler = build_scheduler(worker_factory, interval_minutes)
    logger.info(f"Scheduler started. Worker runs every {interval_minutes} minutes")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")
