import json

from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST, require_http_methods

from accounts import identity
from planner.assignees import apply_audience, audience_from_payload, payload_touches_audience
from planner.audience import filter_visible, is_visible, may_delete
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

from .models import Event


def serialize_event(event):
    """Serialize an event to a dictionary for JSON responses."""
    audience = event.audience
    return {
        'id': str(event.id),
        'title': event.title,
        'venue': event.venue_label,
        'duration': event.duration or None,
        'date_time': event.date_time.isoformat(),
        'description': event.description or None,
        'items': event.items or None,
        'is_important': event.is_important,
        'is_for_all': audience.for_all,
        'assigned_to': sorted(audience.explicit_ids),
        'created_by': event.created_by_id,
        'created_at': event.created_at.isoformat() if event.created_at else None,
    }


def visible_events(viewer):
    events = fetch(Event.objects.all())
    return list(filter_visible(events, viewer.viewer_id))


def get_visible_event(viewer, event_id):
    event = call_with_retry(Event.objects.filter(pk=event_id).first)
    if event is None or not is_visible(event, viewer.viewer_id):
        raise NotFoundError('Event not found')
    return event


def _load_json(request):
    body = (request.body or b'{}').decode('utf-8', 'replace')
    data = json.loads(body)
    if not isinstance(data, dict):
        raise json.JSONDecodeError('Expected a JSON object', body, 0)
    return data


def _apply_fields(event, data, tz):
    if 'title' in data:
        title = (data.get('title') or '').strip()
        if not title:
            raise ValidationError(INVALID_FIELD, 'title is required', field='title')
        event.title = title
    if 'date_time' in data:
        try:
            date_time = parse_user_datetime(data.get('date_time'), tz)
        except ValueError:
            date_time = None
        if date_time is None:
            raise ValidationError(INVALID_FIELD, 'date_time is required', field='date_time')
        event.date_time = date_time
    # Optional text fields: blank is stored as empty, venue_label supplies the display default
    for name in ('venue', 'duration', 'description', 'items'):
        if name in data:
            setattr(event, name, (data.get(name) or '').strip())
    if 'is_important' in data:
        event.is_important = bool(data.get('is_important'))


@require_GET
@viewer_required
def event_list(request, viewer):
    """
    List the viewer's events.

    Query parameters:
        title, venue: case-insensitive substring filters
        important: '1' to keep only important events
        sort: 'date_time' (default) or 'title'
    """
    try:
        events = visible_events(viewer)
    except StudyboardError as e:
        return error_response(e)

    title = request.GET.get('title', '').strip().lower()
    venue = request.GET.get('venue', '').strip().lower()
    important_only = request.GET.get('important') in ('1', 'true')

    if title:
        events = [e for e in events if title in e.title.lower()]
    if venue:
        events = [e for e in events if venue in e.venue_label.lower()]
    if important_only:
        events = [e for e in events if e.is_important]

    if request.GET.get('sort') == 'title':
        events.sort(key=lambda e: e.title)
    else:
        events.sort(key=lambda e: e.date_time)

    return JsonResponse({'events': [serialize_event(e) for e in events]})


@require_POST
@viewer_required
def create_event(request, viewer):
    """Create an event. Title and date_time are required; venue is optional."""
    try:
        data = _load_json(request)
        user = identity.get_user(viewer.viewer_id)

        if not (data.get('title') or '').strip():
            raise ValidationError(INVALID_FIELD, 'title is required', field='title')
        if not data.get('date_time'):
            raise ValidationError(INVALID_FIELD, 'date_time is required', field='date_time')

        event = Event(created_by=user)
        _apply_fields(event, data, viewer.tz)
        apply_audience(event, audience_from_payload(data))
        call_with_retry(event.save)

        return JsonResponse({'success': True, 'event': serialize_event(event)})
    except StudyboardError as e:
        return error_response(e)
    except json.JSONDecodeError:
        return JsonResponse({'success': False, 'error': 'Invalid JSON'}, status=400)


@require_http_methods(["GET", "PATCH", "DELETE"])
@viewer_required
def event_detail(request, viewer, event_id):
    """Get, update or delete an event the viewer can see."""
    try:
        event = get_visible_event(viewer, event_id)

        if request.method == 'DELETE':
            if not may_delete(event, viewer.viewer_id):
                raise ForbiddenError('Only the creator can delete this event')
            call_with_retry(event.delete)
            return JsonResponse({'success': True})

        if request.method == 'PATCH':
            data = _load_json(request)
            _apply_fields(event, data, viewer.tz)
            if payload_touches_audience(data):
                apply_audience(event, audience_from_payload(data))
            call_with_retry(event.save)

        return JsonResponse({'success': True, 'event': serialize_event(event)})
    except StudyboardError as e:
        return error_response(e)
    except json.JSONDecodeError:
        return JsonResponse({'success': False, 'error': 'Invalid JSON'}, status=400)
