"""
Deadline status for task lists.

A deadline in the year 2099 is the old "no deadline" marker, treated the same
as a missing deadline. Days remaining are whole days rounded up, so anything
due within the next 24 hours counts as 1 day.
"""
import math
from datetime import date, datetime, timedelta
from enum import Enum

import pytz

from .calendar_grid import TASK_DATE_FIELDS, _item_value, to_local_date

NO_DEADLINE_YEAR = 2099
NO_DEADLINE_LABEL = '期限なし'

URGENT_DAYS = 1
SOON_DAYS = 3
DEFAULT_URGENT_WINDOW_DAYS = 2


class DeadlineStatus(str, Enum):
    COMPLETED = 'completed'
    EXPIRED = 'expired'
    URGENT = 'urgent'
    SOON = 'soon'
    NORMAL = 'normal'
    NO_DEADLINE = 'no_deadline'


def _as_datetime(value):
    """Coerce stored deadline values to aware UTC datetimes (None stays None)."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        except ValueError:
            return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return pytz.UTC.localize(value)
        return value
    if isinstance(value, date):
        return pytz.UTC.localize(datetime(value.year, value.month, value.day))
    return None


def is_no_deadline(deadline):
    """True for a missing deadline or the 2099 marker."""
    deadline = _as_datetime(deadline)
    return deadline is None or deadline.year == NO_DEADLINE_YEAR


def days_until_deadline(deadline, now):
    """Whole days until the deadline, rounded up. None when there is no deadline."""
    if is_no_deadline(deadline):
        return None
    delta = _as_datetime(deadline) - _as_datetime(now)
    return math.ceil(delta / timedelta(days=1))


def classify(deadline, is_completed, now):
    """
    Status of a task for display.

    Order: no deadline, completed, expired (deadline already passed),
    urgent (<= 1 day), soon (<= 3 days), normal.
    """
    if is_no_deadline(deadline):
        return DeadlineStatus.NO_DEADLINE
    if is_completed:
        return DeadlineStatus.COMPLETED

    deadline = _as_datetime(deadline)
    now = _as_datetime(now)
    if deadline < now:
        return DeadlineStatus.EXPIRED

    days_remaining = days_until_deadline(deadline, now)
    if days_remaining < 0:
        return DeadlineStatus.EXPIRED
    if days_remaining <= URGENT_DAYS:
        return DeadlineStatus.URGENT
    if days_remaining <= SOON_DAYS:
        return DeadlineStatus.SOON
    return DeadlineStatus.NORMAL


def count_urgent_tasks(tasks, completed_task_ids, now, window_days=DEFAULT_URGENT_WINDOW_DAYS):
    """
    Number of open tasks that are expired or urgent, with a deadline no later
    than now + window_days. Tasks without a deadline never count.
    """
    completed = {str(task_id) for task_id in completed_task_ids}
    horizon = _as_datetime(now) + timedelta(days=window_days)
    count = 0
    for task in tasks:
        if str(_item_value(task, ('id',))) in completed:
            continue
        deadline = _item_value(task, TASK_DATE_FIELDS)
        if is_no_deadline(deadline):
            continue
        if _as_datetime(deadline) > horizon:
            continue
        if classify(deadline, False, now) in (DeadlineStatus.EXPIRED, DeadlineStatus.URGENT):
            count += 1
    return count


def format_deadline(deadline, tz=pytz.UTC):
    """Deadline as shown in lists: '2024年3月15日', or '期限なし'."""
    if is_no_deadline(deadline):
        return NO_DEADLINE_LABEL
    day = to_local_date(_as_datetime(deadline), tz)
    return f"{day.year}年{day.month}月{day.day}日"
