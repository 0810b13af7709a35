import logging
import uuid
from typing import Any, Callable

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.background import BackgroundScheduler

from config import get_settings

logger = logging.getLogger(__name__)


class SchedulerManager:
    """Runs fire-and-forget jobs (report delivery) off the request thread."""

    def __init__(self) -> None:
        settings = get_settings()
        self.scheduler = BackgroundScheduler(timezone=settings.timezone)
        self.scheduler.add_listener(
            self._on_job_event, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR
        )

    def _on_job_event(self, event: JobExecutionEvent) -> None:
        if event.exception is not None:
            logger.error(
                f"job_failed: job_id={event.job_id} error={event.exception!r}"
            )
        else:
            logger.info(f"job_succeeded: job_id={event.job_id}")

    def submit(self, func: Callable[..., Any], *args: Any, name: str = "job") -> str:
        job_id = f"{name}-{uuid.uuid4().hex[:12]}"
        # No trigger means a single run as soon as a worker is free.
        self.scheduler.add_job(
            func,
            args=list(args),
            id=job_id,
            misfire_grace_time=300,
        )
        logger.info(f"job_queued: job_id={job_id}")
        return job_id

    def start(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Scheduler started")

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
