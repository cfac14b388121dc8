"""
Audience input from create/update requests.

A request picks the audience with is_for_all, user ids in assigned_to, or
attendance numbers in assigned_student_ids. Picking nobody means everyone.
"""
from accounts import identity
from accounts.models import Student
from studyboard.errors import INVALID_FIELD, ValidationError
from studyboard.store import call_with_retry

from .audience import Audience, audience_columns


def _as_list(value, field):
    if value is None:
        return []
    if isinstance(value, (str, int)):
        return [value]
    if isinstance(value, (list, tuple)):
        return list(value)
    raise ValidationError(INVALID_FIELD, f"{field} must be a list", field=field)


def resolve_assignee_ids(user_ids=None, student_ids=None):
    """
    Turn user ids and attendance numbers into a sorted list of known user ids.

    Raises:
        ValidationError: an unknown user id
        NotFoundError: an unknown attendance number
    """
    ids = {str(user_id) for user_id in _as_list(user_ids, 'assigned_to') if str(user_id).strip()}

    if ids:
        known = set(call_with_retry(
            lambda: list(Student.objects.filter(pk__in=ids).values_list('pk', flat=True))
        ))
        unknown = ids - known
        if unknown:
            raise ValidationError(
                INVALID_FIELD,
                f"Unknown user id(s): {', '.join(sorted(unknown))}",
                field='assigned_to',
            )

    for student_id in _as_list(student_ids, 'assigned_student_ids'):
        ids.add(str(identity.get_user_by_student_id(student_id).pk))

    return sorted(ids)


def audience_from_payload(data):
    """Build the Audience described by a request body."""
    if data.get('is_for_all'):
        return Audience.everyone()
    ids = resolve_assignee_ids(data.get('assigned_to'), data.get('assigned_student_ids'))
    if not ids:
        return Audience.everyone()
    return Audience.only(ids)


def apply_audience(obj, audience):
    """Write audience onto a Task or Event in the current row shape."""
    for name, value in audience_columns(audience).items():
        setattr(obj, name, value)


def payload_touches_audience(data):
    return any(key in data for key in ('is_for_all', 'assigned_to', 'assigned_student_ids'))
