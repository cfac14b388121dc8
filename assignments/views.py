import json

import pytz
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET, require_POST, require_http_methods

from accounts import identity
from planner.assignees import apply_audience, audience_from_payload, payload_touches_audience
from planner.audience import filter_visible, is_visible, may_delete
from planner.urgency import classify, days_until_deadline, format_deadline
from studyboard.errors import (
    INVALID_FIELD,
    ForbiddenError,
    NotFoundError,
    StudyboardError,
    ValidationError,
    error_response,
)
from studyboard.session import viewer_required
from studyboard.store import call_with_retry, fetch
from studyboard.timezone_utils import parse_user_datetime

from .models import Task, UserTaskStatus

SUBMISSION_METHODS = {value for value, _label in Task.SUBMISSION_METHOD_CHOICES}


def serialize_task(task, is_completed=False, now=None, tz=pytz.UTC):
    """Serialize a task to a dictionary for JSON responses."""
    now = now or timezone.now()
    audience = task.audience
    return {
        'id': str(task.id),
        'subject': task.subject,
        'title': task.title,
        'description': task.description,
        'deadline': task.deadline.isoformat() if task.deadline else None,
        'deadline_label': format_deadline(task.deadline, tz),
        'submission_method': task.submission_method,
        'submission_method_label': task.get_submission_method_display(),
        'is_important': task.is_important,
        'is_for_all': audience.for_all,
        'assigned_to': sorted(audience.explicit_ids),
        'created_by': task.created_by_id,
        'created_at': task.created_at.isoformat() if task.created_at else None,
        'is_completed': is_completed,
        'status': classify(task.deadline, is_completed, now).value,
        'days_remaining': days_until_deadline(task.deadline, now),
    }


def deadline_sort_key(task):
    """Earliest deadline first; tasks without a deadline last."""
    return (task.deadline is None, task.deadline or timezone.now(), task.title)


def visible_tasks(viewer):
    """Every task the viewer may see, ordered by deadline."""
    tasks = fetch(Task.objects.all())
    return sorted(filter_visible(tasks, viewer.viewer_id), key=deadline_sort_key)


def get_visible_task(viewer, task_id):
    task = call_with_retry(Task.objects.filter(pk=task_id).first)
    if task is None or not is_visible(task, viewer.viewer_id):
        raise NotFoundError('Task not found')
    return task


def _load_json(request):
    body = (request.body or b'{}').decode('utf-8', 'replace')
    data = json.loads(body)
    if not isinstance(data, dict):
        raise json.JSONDecodeError('Expected a JSON object', body, 0)
    return data


def _apply_fields(task, data, tz):
    """Validate and copy editable fields from a request body onto task."""
    for name in ('subject', 'title'):
        if name in data:
            value = (data.get(name) or '').strip()
            if not value:
                raise ValidationError(INVALID_FIELD, f"{name} is required", field=name)
            setattr(task, name, value)
    if 'description' in data:
        task.description = (data.get('description') or '').strip()
    if 'deadline' in data:
        try:
            task.deadline = parse_user_datetime(data.get('deadline'), tz)
        except ValueError:
            raise ValidationError(INVALID_FIELD, 'Invalid deadline', field='deadline')
    if 'submission_method' in data:
        method = data.get('submission_method')
        if method not in SUBMISSION_METHODS:
            raise ValidationError(INVALID_FIELD, 'Unknown submission method', field='submission_method')
        task.submission_method = method
    if 'is_important' in data:
        task.is_important = bool(data.get('is_important'))


@require_GET
@viewer_required
def task_list(request, viewer):
    """
    List the viewer's tasks.

    Query parameters:
        subject: repeatable; keep only these subjects
        completion: 'completed' and/or 'uncompleted'
        important: '1' to keep only important tasks
    """
    try:
        tasks = visible_tasks(viewer)
        completed_ids = call_with_retry(UserTaskStatus.completed_task_ids, viewer.viewer_id)
    except StudyboardError as e:
        return error_response(e)

    subject_options = sorted({task.subject for task in tasks})

    subjects = request.GET.getlist('subject')
    completion = request.GET.getlist('completion')
    important_only = request.GET.get('important') in ('1', 'true')

    now = timezone.now()
    rows = []
    for task in tasks:
        done = str(task.id) in completed_ids
        if subjects and task.subject not in subjects:
            continue
        if 'completed' in completion and not done:
            continue
        if 'uncompleted' in completion and done:
            continue
        if important_only and not task.is_important:
            continue
        rows.append(serialize_task(task, done, now, viewer.tz))

    return JsonResponse({'tasks': rows, 'subject_options': subject_options})


@require_POST
@viewer_required
def create_task(request, viewer):
    """Create a task. Without is_for_all or assignees it is for everyone."""
    try:
        data = _load_json(request)
        user = identity.get_user(viewer.viewer_id)

        for name in ('subject', 'title'):
            if not (data.get(name) or '').strip():
                raise ValidationError(INVALID_FIELD, f"{name} is required", field=name)

        task = Task(created_by=user)
        _apply_fields(task, data, viewer.tz)
        apply_audience(task, audience_from_payload(data))
        call_with_retry(task.save)

        return JsonResponse({'success': True, 'task': serialize_task(task, tz=viewer.tz)})
    except StudyboardError as e:
        return error_response(e)
    except json.JSONDecodeError:
        return JsonResponse({'success': False, 'error': 'Invalid JSON'}, status=400)


@require_http_methods(["GET", "PATCH", "DELETE"])
@viewer_required
def task_detail(request, viewer, task_id):
    """Get, update or delete a task the viewer can see."""
    try:
        task = get_visible_task(viewer, task_id)

        if request.method == 'DELETE':
            if not may_delete(task, viewer.viewer_id):
                raise ForbiddenError('Only the creator can delete this task')
            call_with_retry(task.delete)
            return JsonResponse({'success': True})

        if request.method == 'PATCH':
            data = _load_json(request)
            _apply_fields(task, data, viewer.tz)
            if payload_touches_audience(data):
                apply_audience(task, audience_from_payload(data))
            call_with_retry(task.save)

        done = str(task.id) in UserTaskStatus.completed_task_ids(viewer.viewer_id)
        return JsonResponse({'success': True, 'task': serialize_task(task, done, tz=viewer.tz)})
    except StudyboardError as e:
        return error_response(e)
    except json.JSONDecodeError:
        return JsonResponse({'success': False, 'error': 'Invalid JSON'}, status=400)


@require_POST
@viewer_required
def set_task_status(request, viewer, task_id):
    """
    Mark a task done or not done for the viewer.

    Body: {"is_completed": bool}. Without it the current flag is flipped.
    """
    try:
        data = _load_json(request)
        task = get_visible_task(viewer, task_id)
        user = identity.get_user(viewer.viewer_id)

        if 'is_completed' in data:
            is_completed = bool(data['is_completed'])
        else:
            is_completed = str(task.id) not in UserTaskStatus.completed_task_ids(user.pk)

        status = call_with_retry(UserTaskStatus.set_completion, user, task, is_completed)
        return JsonResponse({
            'success': True,
            'task_id': str(task.id),
            'is_completed': status.is_completed,
            'status': classify(task.deadline, status.is_completed, timezone.now()).value,
        })
    except StudyboardError as e:
        return error_response(e)
    except json.JSONDecodeError:
        return JsonResponse({'success': False, 'error': 'Invalid JSON'}, status=400)
