import json
import uuid

from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST, require_http_methods

from accounts import identity
from assignments.models import Task
from planner.audience import may_delete
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

from .models import Exam, ExamNotification


def serialize_exam(exam, notification_enabled=None):
    """Serialize a test to a dictionary for JSON responses."""
    related = _related_task(exam)
    return {
        'id': str(exam.id),
        'subject': exam.subject,
        'test_date': exam.test_date.isoformat(),
        'scope': exam.scope,
        'related_task_id': str(exam.related_task_id) if exam.related_task_id else None,
        'related_task_title': f"{related.subject} - {related.title}" if related else None,
        'teacher': exam.teacher or None,
        'is_important': exam.is_important,
        'created_by': exam.created_by_id,
        'created_at': exam.created_at.isoformat() if exam.created_at else None,
        'notification_enabled': notification_enabled,
    }


def _related_task(exam):
    # Weak reference: the task may have been deleted without clearing the id
    try:
        return exam.related_task
    except Task.DoesNotExist:
        return None


def _notification_map(user_id):
    return dict(
        ExamNotification.objects.filter(user_id=user_id).values_list('test_id', 'is_notification_enabled')
    )


def _load_json(request):
    body = (request.body or b'{}').decode('utf-8', 'replace')
    data = json.loads(body)
    if not isinstance(data, dict):
        raise json.JSONDecodeError('Expected a JSON object', body, 0)
    return data


def get_exam(exam_id):
    exam = call_with_retry(Exam.objects.filter(pk=exam_id).first)
    if exam is None:
        raise NotFoundError('Test not found')
    return exam


@require_GET
@viewer_required
def exam_list(request, viewer):
    """
    List tests. Tests are visible to everyone.

    Query parameters:
        subject: case-insensitive substring filter
        important: '1' to keep only important tests
        sort: 'date' (default) or 'subject'
    """
    try:
        exams = fetch(Exam.objects.select_related('related_task'))
        notifications = call_with_retry(_notification_map, viewer.viewer_id)
    except StudyboardError as e:
        return error_response(e)

    subject = request.GET.get('subject', '').strip().lower()
    if subject:
        exams = [e for e in exams if subject in e.subject.lower()]
    if request.GET.get('important') in ('1', 'true'):
        exams = [e for e in exams if e.is_important]

    if request.GET.get('sort') == 'subject':
        exams.sort(key=lambda e: e.subject)
    else:
        exams.sort(key=lambda e: e.test_date)

    return JsonResponse({'tests': [serialize_exam(e, notifications.get(e.id)) for e in exams]})


@require_POST
@viewer_required
def create_exam(request, viewer):
    """Create a test. subject and test_date are required."""
    try:
        data = _load_json(request)
        user = identity.get_user(viewer.viewer_id)

        subject = (data.get('subject') or '').strip()
        if not subject:
            raise ValidationError(INVALID_FIELD, 'subject is required', field='subject')
        try:
            test_date = parse_user_datetime(data.get('test_date'), viewer.tz)
        except ValueError:
            test_date = None
        if test_date is None:
            raise ValidationError(INVALID_FIELD, 'test_date is required', field='test_date')

        related_task = None
        if data.get('related_task_id'):
            try:
                related_task_id = uuid.UUID(str(data['related_task_id']))
            except ValueError:
                raise ValidationError(INVALID_FIELD, 'Invalid related_task_id', field='related_task_id')
            related_task = Task.objects.filter(pk=related_task_id).first()
            if related_task is None:
                raise ValidationError(INVALID_FIELD, 'Related task not found', field='related_task_id')

        exam = Exam(
            subject=subject,
            test_date=test_date,
            scope=(data.get('scope') or '').strip(),
            related_task=related_task,
            teacher=(data.get('teacher') or '').strip(),
            is_important=bool(data.get('is_important')),
            created_by=user,
        )
        call_with_retry(exam.save)
        return JsonResponse({'success': True, 'test': serialize_exam(exam)})
    except StudyboardError as e:
        return error_response(e)
    except json.JSONDecodeError:
        return JsonResponse({'success': False, 'error': 'Invalid JSON'}, status=400)


@require_http_methods(["GET", "DELETE"])
@viewer_required
def exam_detail(request, viewer, exam_id):
    try:
        exam = get_exam(exam_id)
        if request.method == 'DELETE':
            if not may_delete(exam, viewer.viewer_id):
                raise ForbiddenError('Only the creator can delete this test')
            call_with_retry(exam.delete)
            return JsonResponse({'success': True})
        enabled = _notification_map(viewer.viewer_id).get(exam.id)
        return JsonResponse({'success': True, 'test': serialize_exam(exam, enabled)})
    except StudyboardError as e:
        return error_response(e)


@require_POST
@viewer_required
def set_exam_notification(request, viewer, exam_id):
    """Turn the viewer's reminder for a test on or off. Body: {"enabled": bool}."""
    try:
        data = _load_json(request)
        if 'enabled' not in data:
            raise ValidationError(INVALID_FIELD, 'enabled is required', field='enabled')
        exam = get_exam(exam_id)
        user = identity.get_user(viewer.viewer_id)
        notification = call_with_retry(ExamNotification.set_enabled, user, exam, data['enabled'])
        return JsonResponse({
            'success': True,
            'test_id': str(exam.id),
            'enabled': notification.is_notification_enabled,
        })
    except StudyboardError as e:
        return error_response(e)
    except json.JSONDecodeError:
        return JsonResponse({'success': False, 'error': 'Invalid JSON'}, status=400)
