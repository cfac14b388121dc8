"""
Month grid for the calendar page.

The grid is always 6 weeks x 7 days = 42 cells, Sunday first. Leading cells
are the tail of the previous month, trailing cells the start of the next.
Items land in the cell whose local calendar date (viewer's timezone) equals
their own date; the time of day is ignored.
"""
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

import pytz

GRID_CELLS = 42

TASK_DATE_FIELDS = ('deadline',)
EVENT_DATE_FIELDS = ('date_time', 'dateTime')
TEST_DATE_FIELDS = ('test_date', 'testDate', 'date')


@dataclass
class CalendarDay:
    """One cell of the month grid."""

    date: date
    is_current_month: bool
    tasks: list = field(default_factory=list)
    events: list = field(default_factory=list)
    tests: list = field(default_factory=list)

    @property
    def is_empty(self):
        return not (self.tasks or self.events or self.tests)


def to_local_date(value, tz=pytz.UTC):
    """
    Convert a stored timestamp to the viewer's calendar date.

    Accepts aware datetimes, naive datetimes (taken as UTC), ISO 8601 strings
    (a trailing 'Z' is accepted) and plain dates. Returns None for None or
    unparseable strings.
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        except ValueError:
            return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = pytz.UTC.localize(value)
        return value.astimezone(tz).date()
    if isinstance(value, date):
        return value
    return None


def _item_value(item, fields):
    for name in fields:
        if isinstance(item, Mapping):
            if name in item:
                return item[name]
        elif hasattr(item, name):
            return getattr(item, name)
    return None


def bucket_by_date(items, fields, tz=pytz.UTC):
    """Group items by local date, preserving input order within each day."""
    buckets = defaultdict(list)
    for item in items:
        day = to_local_date(_item_value(item, fields), tz)
        if day is not None:
            buckets[day].append(item)
    return buckets


def month_start(month_anchor):
    """First day of the month containing month_anchor."""
    return date(month_anchor.year, month_anchor.month, 1)


def sunday_weekday(day):
    """Weekday with Sunday = 0 through Saturday = 6."""
    return (day.weekday() + 1) % 7


def grid_start_for(month_anchor):
    """
    First (Sunday) cell of the grid for the month containing month_anchor.

    Raises ValueError when any of the 42 cells falls outside date.min..date.max,
    which only happens for January of year 1 and December of year 9999.
    """
    first = month_start(month_anchor)
    try:
        grid_start = first - timedelta(days=sunday_weekday(first))
        grid_start + timedelta(days=GRID_CELLS - 1)
    except OverflowError:
        raise ValueError(f"Month {first.year}-{first.month:02d} is outside the supported range") from None
    return grid_start


def build_month_grid(month_anchor, tasks=(), events=(), tests=(), tz=pytz.UTC):
    """
    Build the 42 cells for the month containing month_anchor.

    Args:
        month_anchor: Any date (or datetime) inside the target month
        tasks, events, tests: Items to place, bucketed by deadline,
            date_time and test_date respectively
        tz: Viewer's timezone for converting timestamps to calendar dates

    Returns:
        List of exactly 42 CalendarDay objects

    Raises:
        ValueError: The grid would run past the first or last representable date
    """
    first = month_start(month_anchor)
    grid_start = grid_start_for(first)

    task_days = bucket_by_date(tasks, TASK_DATE_FIELDS, tz)
    event_days = bucket_by_date(events, EVENT_DATE_FIELDS, tz)
    test_days = bucket_by_date(tests, TEST_DATE_FIELDS, tz)

    days = []
    for offset in range(GRID_CELLS):
        day = grid_start + timedelta(days=offset)
        days.append(CalendarDay(
            date=day,
            is_current_month=(day.year == first.year and day.month == first.month),
            tasks=list(task_days.get(day, ())),
            events=list(event_days.get(day, ())),
            tests=list(test_days.get(day, ())),
        ))
    return days


def items_for_date(day, tasks=(), events=(), tests=(), tz=pytz.UTC):
    """Return the CalendarDay for a single selected date."""
    def on_day(items, fields):
        return [item for item in items if to_local_date(_item_value(item, fields), tz) == day]

    return CalendarDay(
        date=day,
        is_current_month=True,
        tasks=on_day(tasks, TASK_DATE_FIELDS),
        events=on_day(events, EVENT_DATE_FIELDS),
        tests=on_day(tests, TEST_DATE_FIELDS),
    )
