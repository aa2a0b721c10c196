"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    FetchSettings,
    GlobalConfig,
    ScheduleConfig,
    ScheduleType,
    VacancyPattern,
    WorkerConfig,
)

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "FetchSettings",
    "GlobalConfig",
    "ScheduleConfig",
    "ScheduleType",
    "VacancyPattern",
    "WorkerConfig",
]
