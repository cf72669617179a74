"""Cron schedules: matching, per-account registry, evaluation passes."""

from cronpost.cron.registry import ScheduleEntry, ScheduleRegistry
from cronpost.cron.runner import CronRunner, RunReport
from cronpost.cron.schedule import ScheduleSpec, Serializable, split_schedule_command
from cronpost.cron.ticker import MinuteTicker

__all__ = [
    "CronRunner",
    "MinuteTicker",
    "RunReport",
    "ScheduleEntry",
    "ScheduleRegistry",
    "ScheduleSpec",
    "Serializable",
    "split_schedule_command",
]
