"""
Pattern tests: executable documentation of the codebase's critical invariants.

These tests demonstrate (and enforce) the patterns every change must follow.
Read these before writing new code.

Run with: python manage.py test tests.test_patterns
"""
import json
from datetime import datetime, timezone as dt_timezone
from unittest.mock import patch

import requests
from django.contrib.sessions.backends.db import SessionStore
from django.db import OperationalError
from django.test import TestCase, RequestFactory, override_settings

from accounts import identity
from accounts.models import Student
from assignments.models import Task, UserTaskStatus
from exams.models import Exam, ExamNotification
from planner.audience import Audience, is_visible, normalize_audience
from studyboard.errors import (
    DUPLICATE_STUDENT_ID,
    NotFoundError,
    UpstreamError,
    ValidationError,
    error_response,
)
from studyboard.session import SESSION_VIEWER_KEY, ViewerContext, get_viewer_context, viewer_required
from studyboard.store import call_with_retry
from studyboard.timezone_utils import get_user_timezone, get_user_today, parse_user_datetime


class StudentIdUniquenessTests(TestCase):
    """
    PATTERN: One Student ID per User

    student_id is unique across users. accounts.identity checks availability
    before any write, and the unique index backs it up. Never write
    Student.student_id anywhere else.
    """

    def test_second_user_with_same_number_is_rejected(self):
        identity.resolve_user({'id': 'u1', 'email': 'a@example.com'}, '5')
        with self.assertRaises(ValidationError) as ctx:
            identity.resolve_user({'id': 'u2', 'email': 'b@example.com'}, '5')
        self.assertEqual(ctx.exception.code, DUPLICATE_STUDENT_ID)
        self.assertEqual(Student.objects.filter(student_id='5').count(), 1)

    def test_check_excludes_the_user_being_updated(self):
        user = Student.objects.create(id='u1', email='a@example.com', student_id='5')
        self.assertFalse(identity.check_student_id_available('5'))
        self.assertTrue(identity.check_student_id_available('5', exclude_user_id=user.pk))


class StatusUpsertTests(TestCase):
    """
    PATTERN: Per-user Flags are Upserts

    UserTaskStatus and ExamNotification hold one row per (user, item).
    Always write them with the set_* classmethods (update_or_create), so
    repeating a request never creates a second row.
    """

    def setUp(self):
        self.user = Student.objects.create(id='u1', email='a@example.com', student_id='5')

    def test_task_status_upsert(self):
        task = Task.objects.create(subject='Math', title='T')
        for flag in (True, True, False, True):
            UserTaskStatus.set_completion(self.user, task, flag)
        self.assertEqual(UserTaskStatus.objects.count(), 1)
        self.assertTrue(UserTaskStatus.objects.get().is_completed)

    def test_notification_upsert(self):
        exam = Exam.objects.create(subject='Math', test_date=datetime(2030, 1, 1, tzinfo=dt_timezone.utc))
        for flag in (False, False):
            ExamNotification.set_enabled(self.user, exam, flag)
        self.assertEqual(ExamNotification.objects.count(), 1)


class AudienceTieBreakTests(TestCase):
    """
    PATTERN: Audience Resolution in One Place

    Read audiences through planner.audience.normalize_audience (or the
    model's .audience property). is_for_all wins over any explicit list,
    the legacy assigned_user_id folds into the explicit set, and the creator
    gets no implicit access.
    """

    def test_for_all_wins(self):
        task = Task(subject='Math', title='T', is_for_all=True, assigned_to=['u1'])
        self.assertEqual(task.audience, Audience.everyone())
        self.assertTrue(is_visible(task, 'someone-else'))

    def test_legacy_assignee_folded(self):
        row = {'is_for_all': False, 'assigned_to': [], 'assigned_user_id': 'u1'}
        self.assertEqual(normalize_audience(row), Audience.only(['u1']))

    def test_creator_not_implicitly_included(self):
        creator = Student.objects.create(id='u1', email='a@example.com', student_id='5')
        task = Task.objects.create(subject='Math', title='T', assigned_to=['u2'], created_by=creator)
        self.assertFalse(is_visible(task, creator.pk))


class ExplicitViewerContextTests(TestCase):
    """
    PATTERN: Explicit Viewer Context

    Views never read the session themselves. Decorate them with
    @viewer_required and use the ViewerContext argument; planner functions
    take the viewer id as a parameter.
    """

    def setUp(self):
        self.factory = RequestFactory()

    def request_with_session(self, viewer_id=None):
        request = self.factory.get('/')
        request.session = SessionStore()
        if viewer_id:
            request.session[SESSION_VIEWER_KEY] = viewer_id
        return request

    def test_context_from_session(self):
        request = self.request_with_session('u1')
        request.COOKIES['user_timezone'] = 'Asia/Tokyo'
        viewer = get_viewer_context(request)
        self.assertEqual(viewer, ViewerContext(viewer_id='u1', tz=get_user_timezone(request)))
        self.assertEqual(str(viewer.tz), 'Asia/Tokyo')

    def test_signed_out_request_rejected(self):
        view = viewer_required(lambda request, viewer: None)
        resp = view(self.request_with_session())
        self.assertEqual(resp.status_code, 401)
        self.assertFalse(json.loads(resp.content)['success'])

    def test_view_receives_viewer(self):
        view = viewer_required(lambda request, viewer, item_id: (viewer.viewer_id, item_id))
        self.assertEqual(view(self.request_with_session('u1'), 7), ('u1', 7))


class TimezoneHandlingTests(TestCase):
    """
    PATTERN: Timezone from Browser Cookie

    The viewer's timezone is read from `request.COOKIES['user_timezone']`.
    All datetimes are stored in UTC. Calendar dates are computed in the
    viewer's timezone.
    """

    def setUp(self):
        self.factory = RequestFactory()

    def test_timezone_from_cookie(self):
        request = self.factory.get('/')
        request.COOKIES['user_timezone'] = 'Asia/Tokyo'
        self.assertEqual(str(get_user_timezone(request)), 'Asia/Tokyo')

    def test_invalid_timezone_falls_back_to_utc(self):
        request = self.factory.get('/')
        request.COOKIES['user_timezone'] = 'Not/A/Timezone'
        self.assertEqual(str(get_user_timezone(request)), 'UTC')

    @override_settings(DEFAULT_VIEWER_TIMEZONE='Asia/Tokyo')
    def test_default_timezone_is_configurable(self):
        request = self.factory.get('/')
        self.assertEqual(str(get_user_timezone(request)), 'Asia/Tokyo')

    def test_get_user_today_uses_viewer_date(self):
        request = self.factory.get('/')
        request.COOKIES['user_timezone'] = 'Asia/Tokyo'
        mock_now = datetime(2025, 1, 15, 16, 0, 0, tzinfo=dt_timezone.utc)
        with patch('django.utils.timezone.now', return_value=mock_now):
            today, today_start, _today_end = get_user_today(request)
        self.assertEqual(today.day, 16)
        self.assertEqual(today_start.hour, 0)

    def test_naive_input_read_in_viewer_timezone(self):
        request = self.factory.get('/')
        request.COOKIES['user_timezone'] = 'Asia/Tokyo'
        parsed = parse_user_datetime('2025-03-15T09:00', get_user_timezone(request))
        self.assertEqual(parsed.astimezone(dt_timezone.utc).hour, 0)

    def test_z_suffix_accepted(self):
        parsed = parse_user_datetime('2025-03-15T14:30:00Z', get_user_timezone(self.factory.get('/')))
        self.assertEqual(parsed.hour, 14)
        self.assertIsNotNone(parsed.tzinfo)

    def test_unparseable_input_raises(self):
        with self.assertRaises(ValueError):
            parse_user_datetime('next friday', dt_timezone.utc)


class JsonErrorResponseTests(TestCase):
    """
    PATTERN: JSON Error Responses

    Views catch StudyboardError and return error_response(e):
    {'success': False, 'error': message, 'code': code[, 'field': field]}
    with the error's HTTP status.
    """

    def test_validation_error(self):
        resp = error_response(ValidationError('invalid_field', 'title is required', field='title'))
        body = json.loads(resp.content)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(body, {
            'success': False, 'error': 'title is required', 'code': 'invalid_field', 'field': 'title',
        })

    def test_duplicate_is_conflict(self):
        resp = error_response(ValidationError(DUPLICATE_STUDENT_ID, 'taken', field='student_id'))
        self.assertEqual(resp.status_code, 409)

    def test_not_found(self):
        resp = error_response(NotFoundError('Task not found'))
        body = json.loads(resp.content)
        self.assertEqual(resp.status_code, 404)
        self.assertNotIn('field', body)


class RetryPolicyTests(TestCase):
    """
    PATTERN: One Retry Policy

    Calls that leave the process go through studyboard.store.call_with_retry.
    Transient failures become UpstreamError chained to the original error.
    Everything else propagates unchanged.
    """

    def test_single_attempt_by_default(self):
        calls = []

        def flaky():
            calls.append(1)
            raise OperationalError('database is locked')

        with self.assertRaises(UpstreamError) as ctx:
            call_with_retry(flaky)
        self.assertEqual(len(calls), 1)
        self.assertIsInstance(ctx.exception.__cause__, OperationalError)

    @override_settings(STORE_MAX_ATTEMPTS=3, STORE_RETRY_BACKOFF_SECONDS=0)
    def test_retries_transient_errors(self):
        results = [requests.exceptions.Timeout('slow'), requests.exceptions.Timeout('slow'), 'ok']

        def flaky():
            result = results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result

        self.assertEqual(call_with_retry(flaky), 'ok')

    @override_settings(STORE_MAX_ATTEMPTS=3, STORE_RETRY_BACKOFF_SECONDS=0)
    def test_other_errors_not_retried(self):
        calls = []

        def broken():
            calls.append(1)
            raise KeyError('bug')

        with self.assertRaises(KeyError):
            call_with_retry(broken)
        self.assertEqual(len(calls), 1)
