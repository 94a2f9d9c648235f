"""
Scheduler - next due time for recurring jobs.

Monthly and annual recurrences are calendar-aware: they keep the day of
month (clamped to the last day of shorter months) instead of adding a
fixed duration.
"""
import calendar
from datetime import datetime, timedelta
from typing import Optional

from ..models import Job, ScheduleType

DEFAULT_CUSTOM_INTERVAL_DAYS = 7


def add_months(moment: datetime, months: int) -> datetime:
    """Same day-of-month `months` later; Jan 31 + 1 month -> Feb 28/29."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def compute_next_run(job: Job, now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Compute when a job is next due.

    Args:
        job: The job whose recurrence rule applies
        now: Reference instant. Defaults to datetime.now().

    Returns:
        The next due instant (always later than `now`), or None for jobs
        that are manual by schedule or by execution mode.
    """
    if job.is_manual:
        return None

    now = now or datetime.now()
    schedule = ScheduleType(job.schedule_type)

    if schedule == ScheduleType.DAILY:
        return now + timedelta(days=1)
    if schedule == ScheduleType.WEEKLY:
        return now + timedelta(days=7)
    if schedule == ScheduleType.MONTHLY:
        return add_months(now, 1)
    if schedule == ScheduleType.ANNUALLY:
        return add_months(now, 12)
    if schedule == ScheduleType.CUSTOM:
        days = job.custom_interval_days
        if not days or days < 1:
            days = DEFAULT_CUSTOM_INTERVAL_DAYS
        return now + timedelta(days=days)

    return None
