"""
Error taxonomy shared by every app.

- ValidationError: bad or missing input, duplicate unique keys. Raised before any write.
- NotFoundError: a lookup by id or student id found no row.
- ForbiddenError: the viewer may see the row but not change it this way.
- UpstreamError: the database or the identity provider failed or timed out.

Views turn these into JSON responses with error_response().
"""
from django.http import JsonResponse


MISSING_STUDENT_ID = 'missing_student_id'
DUPLICATE_STUDENT_ID = 'duplicate_student_id'
INVALID_FIELD = 'invalid_field'


class StudyboardError(Exception):
    """Base class for application errors."""

    code = 'error'
    status = 500

    def __init__(self, message=''):
        super().__init__(message)
        self.message = message


class ValidationError(StudyboardError):
    """Input rejected before anything was written."""

    status = 400

    def __init__(self, code, message='', field=None):
        super().__init__(message or code)
        self.code = code
        self.field = field
        if code == DUPLICATE_STUDENT_ID:
            self.status = 409


class NotFoundError(StudyboardError):
    code = 'not_found'
    status = 404


class ForbiddenError(StudyboardError):
    code = 'forbidden'
    status = 403


class UpstreamError(StudyboardError):
    code = 'upstream_error'
    status = 502


def error_response(exc):
    """Build the JSON error response for an application error."""
    payload = {'success': False, 'error': exc.message, 'code': exc.code}
    field = getattr(exc, 'field', None)
    if field:
        payload['field'] = field
    return JsonResponse(payload, status=exc.status)
