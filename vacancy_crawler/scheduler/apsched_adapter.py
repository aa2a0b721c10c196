"""APScheduler wrapper scheduling periodic recrawls of workers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ..config import ScheduleConfig, ScheduleType, WorkerConfig
from ..logging_conf import configure_logging


def job_id(worker_name: str) -> str:
    return f"worker::{worker_name}"


class APSchedulerAdapter:
    """Manage one recrawl job per worker that declares a ``recrawl`` schedule."""

    def __init__(self, scheduler: BackgroundScheduler | None = None) -> None:
        self.scheduler = scheduler or BackgroundScheduler()
        self.logger = configure_logging().bind(component="scheduler")
        self.started = False

    def start(self) -> None:
        if not self.started:
            self.scheduler.start()
            self.started = True
            self.logger.info("apscheduler_started")

    def shutdown(self) -> None:
        if self.started:
            self.scheduler.shutdown(wait=False)
            self.started = False
            self.logger.info("apscheduler_stopped")

    def schedule_worker(self, worker: WorkerConfig, callback: Callable[[str], None]) -> bool:
        """Register ``callback(worker.name)``; ``False`` when nothing is scheduled."""

        if worker.recrawl is None:
            return False
        trigger = self._build_trigger(worker.recrawl)
        self.scheduler.add_job(
            callback,
            trigger=trigger,
            id=job_id(worker.name),
            args=[worker.name],
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.logger.info("job_scheduled", worker=worker.name, schedule=worker.recrawl.model_dump(mode="json"))
        return True

    def remove_worker(self, worker_name: str) -> None:
        try:
            self.scheduler.remove_job(job_id(worker_name))
        except JobLookupError:
            self.logger.warning("job_remove_failed", worker=worker_name)

    @staticmethod
    def _build_trigger(schedule: ScheduleConfig):
        if schedule.type is ScheduleType.CRON:
            return CronTrigger.from_crontab(str(schedule.value))
        if schedule.type is ScheduleType.INTERVAL:
            if isinstance(schedule.value, (int, float)):
                return IntervalTrigger(seconds=float(schedule.value))
            if isinstance(schedule.value, dict):
                return IntervalTrigger(**schedule.value)
            raise ValueError("Interval schedule requires seconds or kwargs dict")
        if schedule.type is ScheduleType.ONCE:
            if schedule.value:
                run_date = datetime.fromisoformat(str(schedule.value))
            else:
                run_date = datetime.now(timezone.utc)
            return DateTrigger(run_date=run_date)
        raise ValueError(f"Unknown schedule type: {schedule.type}")

    def list_jobs(self) -> list[dict]:
        return [
            {"id": job.id, "next_run_time": getattr(job, "next_run_time", None), "trigger": str(job.trigger)}
            for job in self.scheduler.get_jobs()
        ]


__all__ = ["APSchedulerAdapter", "job_id"]
