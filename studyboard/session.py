"""
Explicit viewer context.

The signed-in user's id lives in the Django session (set by accounts.views on
sign-in) and is handed to views as a ViewerContext. Core functions in
planner take the viewer id as a parameter and never look it up themselves.
"""
from dataclasses import dataclass
from datetime import tzinfo
from functools import wraps

from django.http import JsonResponse

from .timezone_utils import get_user_timezone

SESSION_VIEWER_KEY = 'viewer_id'


@dataclass(frozen=True)
class ViewerContext:
    """Who is looking, and in which timezone."""

    viewer_id: str
    tz: tzinfo


def get_viewer_context(request):
    """Return the ViewerContext for this request, or None when signed out."""
    viewer_id = request.session.get(SESSION_VIEWER_KEY)
    if not viewer_id:
        return None
    return ViewerContext(viewer_id=str(viewer_id), tz=get_user_timezone(request))


def start_session(request, user):
    """Bind the session to a resolved user."""
    request.session.cycle_key()
    request.session[SESSION_VIEWER_KEY] = str(user.id)


def end_session(request):
    request.session.flush()


def viewer_required(view):
    """Reject signed-out requests with 401; otherwise call view(request, viewer, ...)."""
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        viewer = get_viewer_context(request)
        if viewer is None:
            return JsonResponse({'success': False, 'error': 'Not signed in', 'code': 'unauthenticated'}, status=401)
        return view(request, viewer, *args, **kwargs)
    return wrapper
