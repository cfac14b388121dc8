"""
Dashboard summary: what is coming up for one viewer.

Pure function over already-fetched rows. Nothing is cached between calls,
so a change notification can simply trigger a full rebuild.
"""
from dataclasses import dataclass, field
from datetime import timedelta

from .audience import filter_visible
from .calendar_grid import EVENT_DATE_FIELDS, TASK_DATE_FIELDS, TEST_DATE_FIELDS, _item_value
from .urgency import (
    DEFAULT_URGENT_WINDOW_DAYS,
    _as_datetime,
    classify,
    count_urgent_tasks,
    is_no_deadline,
)

TASK_WINDOW_DAYS = 7
TASK_LIMIT = 5
EVENT_WINDOW_DAYS = 7
EVENT_LIMIT = 3
TEST_WINDOW_DAYS = 14
TEST_LIMIT = 3


@dataclass
class UpcomingTask:
    task: object
    is_completed: bool
    status: object


@dataclass
class Dashboard:
    upcoming_tasks: list = field(default_factory=list)
    upcoming_events: list = field(default_factory=list)
    upcoming_tests: list = field(default_factory=list)
    urgent_count: int = 0


def _upcoming(items, fields, now, window_days, limit):
    """Items dated within [now, now + window_days], earliest first, at most limit."""
    horizon = now + timedelta(days=window_days)
    dated = []
    for item in items:
        when = _as_datetime(_item_value(item, fields))
        if when is not None and now <= when <= horizon:
            dated.append((when, item))
    dated.sort(key=lambda pair: pair[0])
    return [item for _when, item in dated[:limit]]


def build_dashboard(tasks, events, tests, completed_task_ids, viewer_id, now,
                    window_days=DEFAULT_URGENT_WINDOW_DAYS):
    """
    Summarize the viewer's upcoming work.

    Args:
        tasks, events, tests: All rows; audience filtering happens here
        completed_task_ids: Ids of tasks the viewer has completed
        viewer_id: The viewer
        now: Current instant
        window_days: Forward window for the urgent count

    Returns:
        Dashboard with up to 5 tasks and 3 events due in the next 7 days,
        up to 3 tests in the next 14 days, and the urgent task count.
    """
    now = _as_datetime(now)
    completed = {str(task_id) for task_id in completed_task_ids}

    visible_tasks = list(filter_visible(tasks, viewer_id))
    visible_events = list(filter_visible(events, viewer_id))
    visible_tests = list(filter_visible(tests, viewer_id))

    dated_tasks = [task for task in visible_tasks if not is_no_deadline(_item_value(task, TASK_DATE_FIELDS))]
    upcoming_tasks = []
    for task in _upcoming(dated_tasks, TASK_DATE_FIELDS, now, TASK_WINDOW_DAYS, TASK_LIMIT):
        done = str(_item_value(task, ('id',))) in completed
        upcoming_tasks.append(UpcomingTask(
            task=task,
            is_completed=done,
            status=classify(_item_value(task, TASK_DATE_FIELDS), done, now),
        ))

    return Dashboard(
        upcoming_tasks=upcoming_tasks,
        upcoming_events=_upcoming(visible_events, EVENT_DATE_FIELDS, now, EVENT_WINDOW_DAYS, EVENT_LIMIT),
        upcoming_tests=_upcoming(visible_tests, TEST_DATE_FIELDS, now, TEST_WINDOW_DAYS, TEST_LIMIT),
        urgent_count=count_urgent_tasks(visible_tasks, completed, now, window_days),
    )
