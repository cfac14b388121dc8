import logging
from datetime import date

from django.conf import settings
from django.http import JsonResponse
from django.utils import timezone
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_GET

from assignments.models import Task, UserTaskStatus
from assignments.views import serialize_task
from events.models import Event
from events.views import serialize_event
from exams.models import Exam
from exams.views import serialize_exam
from studyboard.errors import StudyboardError, error_response
from studyboard.session import viewer_required
from studyboard.store import call_with_retry, fetch
from studyboard.timezone_utils import get_user_today

from .audience import filter_visible
from .calendar_grid import build_month_grid, grid_start_for, items_for_date
from .dashboard import build_dashboard
from .urgency import DEFAULT_URGENT_WINDOW_DAYS

logger = logging.getLogger(__name__)


def _load_rows(viewer):
    """Fetch every task, event and test plus the viewer's completed task ids."""
    tasks = fetch(Task.objects.all())
    events = fetch(Event.objects.all())
    tests = fetch(Exam.objects.select_related('related_task'))
    completed_ids = call_with_retry(UserTaskStatus.completed_task_ids, viewer.viewer_id)
    return tasks, events, tests, completed_ids


def _serialize_day(day, completed_ids, now, tz):
    return {
        'date': day.date.isoformat(),
        'is_current_month': day.is_current_month,
        'tasks': [serialize_task(t, str(t.id) in completed_ids, now, tz) for t in day.tasks],
        'events': [serialize_event(e) for e in day.events],
        'tests': [serialize_exam(x) for x in day.tests],
    }


@require_GET
@viewer_required
def dashboard(request, viewer):
    """Upcoming tasks, events and tests plus the urgent task count."""
    try:
        tasks, events, tests, completed_ids = _load_rows(viewer)
    except StudyboardError as e:
        return error_response(e)

    now = timezone.now()
    window_days = getattr(settings, 'URGENT_WINDOW_DAYS', DEFAULT_URGENT_WINDOW_DAYS)
    summary = build_dashboard(tasks, events, tests, completed_ids, viewer.viewer_id, now, window_days)

    return JsonResponse({
        'success': True,
        'urgent_count': summary.urgent_count,
        'tasks': [
            serialize_task(item.task, item.is_completed, now, viewer.tz)
            for item in summary.upcoming_tasks
        ],
        'events': [serialize_event(e) for e in summary.upcoming_events],
        'tests': [serialize_exam(x) for x in summary.upcoming_tests],
    })


@require_GET
@viewer_required
def calendar_month(request, viewer):
    """
    Month grid of 42 days, Sunday first.

    Query parameters:
        year, month: defaults to the current month in the viewer's timezone
    """
    today, _start, _end = get_user_today(request)
    try:
        year = int(request.GET.get('year', today.year))
        month = int(request.GET.get('month', today.month))
        anchor = date(year, month, 1)
        grid_start_for(anchor)
    except ValueError:
        return JsonResponse({'success': False, 'error': 'Invalid year or month'}, status=400)

    try:
        tasks, events, tests, completed_ids = _load_rows(viewer)
    except StudyboardError as e:
        return error_response(e)

    grid = build_month_grid(
        anchor,
        tasks=filter_visible(tasks, viewer.viewer_id),
        events=filter_visible(events, viewer.viewer_id),
        tests=filter_visible(tests, viewer.viewer_id),
        tz=viewer.tz,
    )
    now = timezone.now()
    logger.debug("Built calendar %04d-%02d for %s", year, month, viewer.viewer_id)

    return JsonResponse({
        'success': True,
        'year': year,
        'month': month,
        'today': today.isoformat(),
        'days': [_serialize_day(day, completed_ids, now, viewer.tz) for day in grid],
    })


@require_GET
@viewer_required
def calendar_day(request, viewer, day):
    """Everything falling on one date (YYYY-MM-DD) in the viewer's timezone."""
    try:
        selected = parse_date(day)
    except ValueError:
        selected = None
    if selected is None:
        return JsonResponse({'success': False, 'error': 'Invalid date'}, status=400)

    try:
        tasks, events, tests, completed_ids = _load_rows(viewer)
    except StudyboardError as e:
        return error_response(e)

    cell = items_for_date(
        selected,
        tasks=list(filter_visible(tasks, viewer.viewer_id)),
        events=list(filter_visible(events, viewer.viewer_id)),
        tests=list(filter_visible(tests, viewer.viewer_id)),
        tz=viewer.tz,
    )
    return JsonResponse({'success': True, **_serialize_day(cell, completed_ids, timezone.now(), viewer.tz)})
