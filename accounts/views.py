import json

from django.db import transaction
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST, require_http_methods

from studyboard.errors import (
    DUPLICATE_STUDENT_ID,
    INVALID_FIELD,
    MISSING_STUDENT_ID,
    StudyboardError,
    ValidationError,
    error_response,
)
from studyboard.session import end_session, start_session, viewer_required
from studyboard.store import fetch

from . import identity
from .models import Student
from .services.supabase_auth import SupabaseAuthClient


def get_auth_client():
    """Build the identity provider client (patched in tests)."""
    return SupabaseAuthClient()


def serialize_user(user):
    """Serialize a user to a dictionary for JSON responses."""
    return {
        'id': user.id,
        'email': user.email,
        'name': user.display_name,
        'student_id': user.student_id,
        'notification_days': user.notification_days,
    }


def _load_json(request):
    body = (request.body or b'{}').decode('utf-8', 'replace')
    data = json.loads(body)
    if not isinstance(data, dict):
        raise json.JSONDecodeError('Expected a JSON object', body, 0)
    return data


@require_POST
def signup(request):
    """Create the auth account and the user row, then open a session."""
    try:
        data = _load_json(request)
        email = (data.get('email') or '').strip()
        password = data.get('password') or ''
        if not email or not password:
            raise ValidationError(INVALID_FIELD, 'Email and password are required', field='credentials')

        student_id = identity.normalize_student_id(data.get('student_id'))
        if student_id is None:
            raise ValidationError(MISSING_STUDENT_ID, 'Student ID is required', field='student_id')

        # Check before creating the auth account so a taken number never leaves an orphan account
        if not identity.check_student_id_available(student_id):
            raise ValidationError(
                DUPLICATE_STUDENT_ID,
                f"Student ID {student_id} is already in use",
                field='student_id',
            )

        auth_user = get_auth_client().sign_up(email, password, student_id)
        user = identity.resolve_user(auth_user, student_id)
        start_session(request, user)
        return JsonResponse({'success': True, 'user': serialize_user(user)})
    except StudyboardError as e:
        return error_response(e)
    except json.JSONDecodeError:
        return JsonResponse({'success': False, 'error': 'Invalid JSON'}, status=400)


@require_POST
def signin(request):
    """Sign in with email and password through the identity provider."""
    try:
        data = _load_json(request)
        email = (data.get('email') or '').strip()
        password = data.get('password') or ''
        if not email or not password:
            raise ValidationError(INVALID_FIELD, 'Email and password are required', field='credentials')

        session = get_auth_client().sign_in_with_password(email, password)
        user = identity.resolve_user(session.get('user') or {}, data.get('student_id'))
        start_session(request, user)
        return JsonResponse({
            'success': True,
            'user': serialize_user(user),
            'access_token': session.get('access_token'),
        })
    except StudyboardError as e:
        return error_response(e)
    except json.JSONDecodeError:
        return JsonResponse({'success': False, 'error': 'Invalid JSON'}, status=400)


@require_POST
def resume_session(request):
    """Open a session from an access token the browser already holds."""
    try:
        data = _load_json(request)
        access_token = data.get('access_token')
        if not access_token:
            raise ValidationError(INVALID_FIELD, 'access_token is required', field='access_token')

        principal = get_auth_client().get_user(access_token)
        user = identity.resolve_user(principal, data.get('student_id'))
        start_session(request, user)
        return JsonResponse({'success': True, 'user': serialize_user(user)})
    except StudyboardError as e:
        return error_response(e)
    except json.JSONDecodeError:
        return JsonResponse({'success': False, 'error': 'Invalid JSON'}, status=400)


@require_POST
def signout(request):
    """
    Revoke the provider session for the given access_token, then clear the
    local session. When the provider call fails the local session is kept.
    """
    try:
        access_token = _load_json(request).get('access_token')
        if access_token:
            get_auth_client().sign_out(access_token)
    except StudyboardError as e:
        return error_response(e)
    except json.JSONDecodeError:
        return JsonResponse({'success': False, 'error': 'Invalid JSON'}, status=400)

    end_session(request)
    return JsonResponse({'success': True})


@require_http_methods(["GET", "PATCH"])
@viewer_required
def account_settings(request, viewer):
    """Read or update the signed-in user's student ID and notification days."""
    try:
        user = identity.get_user(viewer.viewer_id)
        if request.method == 'GET':
            return JsonResponse({'success': True, 'user': serialize_user(user)})

        data = _load_json(request)
        # Validate everything before the first write
        days = None
        if 'notification_days' in data:
            days = identity.validate_notification_days(data['notification_days'])

        with transaction.atomic():
            if 'student_id' in data:
                identity.update_student_id(user, data['student_id'])
            if days is not None:
                identity.update_notification_days(user, days)

        return JsonResponse({'success': True, 'user': serialize_user(user)})
    except StudyboardError as e:
        return error_response(e)
    except json.JSONDecodeError:
        return JsonResponse({'success': False, 'error': 'Invalid JSON'}, status=400)


@require_GET
@viewer_required
def lookup_by_student_id(request, viewer):
    """Find a user by attendance number (used when assigning tasks)."""
    try:
        user = identity.get_user_by_student_id(request.GET.get('student_id'))
        return JsonResponse({'success': True, 'user': serialize_user(user)})
    except StudyboardError as e:
        return error_response(e)


@require_GET
@viewer_required
def list_users(request, viewer):
    """List every user for the assignee picker."""
    try:
        users = fetch(Student.objects.all())
    except StudyboardError as e:
        return error_response(e)
    return JsonResponse({'users': [serialize_user(u) for u in users]})
