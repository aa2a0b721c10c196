"""Recrawl scheduling."""

from .apsched_adapter import APSchedulerAdapter, job_id

__all__ = ["APSchedulerAdapter", "job_id"]
