"""
Identity resolution: external principal -> Student row.

This is the only place student_id uniqueness is checked. The check runs
before any write, and the database unique index backs it up for races; a
unique-index violation is reported the same way as a failed check.
"""
import logging

from django.db import IntegrityError, transaction

from studyboard.errors import (
    DUPLICATE_STUDENT_ID,
    INVALID_FIELD,
    MISSING_STUDENT_ID,
    NotFoundError,
    ValidationError,
)
from studyboard.store import call_with_retry

from .models import Student

logger = logging.getLogger(__name__)

NOTIFICATION_DAYS_MIN = 1
NOTIFICATION_DAYS_MAX = 30


def normalize_student_id(value):
    """Trim surrounding whitespace. Returns None for missing or blank values."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def check_student_id_available(student_id, exclude_user_id=None):
    """True when no other user holds student_id (exact match)."""
    queryset = Student.objects.filter(student_id=student_id)
    if exclude_user_id is not None:
        queryset = queryset.exclude(pk=exclude_user_id)
    return not call_with_retry(queryset.exists)


def _principal_fields(principal):
    user_id = principal.get('id')
    if not user_id:
        raise ValidationError(INVALID_FIELD, 'Identity has no user id', field='id')
    metadata = principal.get('user_metadata') or {}
    email = principal.get('email') or ''
    name = metadata.get('name') or email
    return str(user_id), email, name, metadata


def _duplicate(student_id):
    return ValidationError(
        DUPLICATE_STUDENT_ID,
        f"Student ID {student_id} is already in use",
        field='student_id',
    )


def resolve_user(principal, student_id=None):
    """
    Map an identity provider principal to its Student, creating it on first sign-in.

    Args:
        principal: Mapping with 'id' and optionally 'email' and 'user_metadata'
            ('name', 'student_id').
        student_id: Attendance number supplied by the sign-up flow. Falls back to
            user_metadata['student_id'] for new users.

    Returns:
        The Student row. An existing row keeps its student_id; only email and
        name are refreshed.

    Raises:
        ValidationError: missing_student_id or duplicate_student_id for new users.
    """
    user_id, email, name, metadata = _principal_fields(principal)

    existing = call_with_retry(Student.objects.filter(pk=user_id).first)
    if existing is not None:
        if existing.email != email or existing.name != name:
            existing.email = email
            existing.name = name
            existing.save(update_fields=['email', 'name', 'updated_at'])
        return existing

    normalized = normalize_student_id(student_id) or normalize_student_id(metadata.get('student_id'))
    if normalized is None:
        raise ValidationError(MISSING_STUDENT_ID, 'Student ID is required', field='student_id')

    if not check_student_id_available(normalized):
        raise _duplicate(normalized)

    try:
        with transaction.atomic():
            user = Student.objects.create(
                id=user_id,
                email=email,
                name=name,
                student_id=normalized,
            )
    except IntegrityError:
        # Lost a race: either the same principal was created concurrently, or the number was taken
        concurrent = Student.objects.filter(pk=user_id, student_id=normalized).first()
        if concurrent is not None:
            return concurrent
        raise _duplicate(normalized)

    logger.info(f"Created user {user.id} with student ID {user.student_id}")
    return user


def update_student_id(user, student_id):
    """
    Change a user's attendance number.

    Raises:
        ValidationError: missing_student_id, or duplicate_student_id when another
            user already holds the number.
    """
    normalized = normalize_student_id(student_id)
    if normalized is None:
        raise ValidationError(MISSING_STUDENT_ID, 'Student ID is required', field='student_id')

    if normalized == user.student_id:
        return user

    if not check_student_id_available(normalized, exclude_user_id=user.pk):
        raise _duplicate(normalized)

    previous = user.student_id
    user.student_id = normalized
    try:
        with transaction.atomic():
            user.save(update_fields=['student_id', 'updated_at'])
    except IntegrityError:
        user.student_id = previous
        raise _duplicate(normalized)

    logger.info(f"User {user.pk} changed student ID {previous} -> {normalized}")
    return user


def get_user_by_student_id(student_id):
    """Look up a user by attendance number, raising NotFoundError when absent."""
    normalized = normalize_student_id(student_id)
    if normalized is None:
        raise ValidationError(MISSING_STUDENT_ID, 'Student ID is required', field='student_id')
    user = call_with_retry(Student.objects.filter(student_id=normalized).first)
    if user is None:
        raise NotFoundError(f"No user with student ID {normalized}")
    return user


def get_user(user_id):
    user = call_with_retry(Student.objects.filter(pk=user_id).first)
    if user is None:
        raise NotFoundError(f"No user with id {user_id}")
    return user


def validate_notification_days(days):
    """Return days as an int in 1-30, or raise ValidationError."""
    if isinstance(days, bool):
        days = None
    try:
        days = int(days)
    except (TypeError, ValueError):
        raise ValidationError(INVALID_FIELD, 'notification_days must be an integer', field='notification_days')

    if not NOTIFICATION_DAYS_MIN <= days <= NOTIFICATION_DAYS_MAX:
        raise ValidationError(
            INVALID_FIELD,
            f"notification_days must be between {NOTIFICATION_DAYS_MIN} and {NOTIFICATION_DAYS_MAX}",
            field='notification_days',
        )
    return days


def update_notification_days(user, days):
    """Set how many days ahead of a deadline the user wants reminders (1-30)."""
    days = validate_notification_days(days)
    user.notification_days = days
    user.save(update_fields=['notification_days', 'updated_at'])
    return user
