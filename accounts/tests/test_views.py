"""Tests for accounts app views."""
import json
from unittest import mock

from django.test import TestCase, Client
from django.urls import reverse

from accounts.models import Student
from studyboard.errors import INVALID_FIELD, UpstreamError, ValidationError
from studyboard.session import SESSION_VIEWER_KEY


class AccountsViewTestBase(TestCase):
    """Base class with a mocked identity provider client."""

    def setUp(self):
        self.client = Client()
        self.auth_client = mock.Mock()
        patcher = mock.patch('accounts.views.get_auth_client', return_value=self.auth_client)
        patcher.start()
        self.addCleanup(patcher.stop)

    def post_json(self, url, data=None):
        return self.client.post(
            url,
            data=json.dumps(data or {}),
            content_type='application/json'
        )

    def patch_json(self, url, data=None):
        return self.client.patch(
            url,
            data=json.dumps(data or {}),
            content_type='application/json'
        )

    def sign_in_as(self, user):
        session = self.client.session
        session[SESSION_VIEWER_KEY] = user.pk
        session.save()


class SignupTests(AccountsViewTestBase):
    """Tests for the sign-up endpoint."""

    def test_signup_creates_user_and_session(self):
        self.auth_client.sign_up.return_value = {
            'id': 'u1', 'email': 'aoi@example.com', 'user_metadata': {'student_id': '5'},
        }
        resp = self.post_json(reverse('accounts:signup'), {
            'email': 'aoi@example.com', 'password': 'secret', 'student_id': '5',
        })
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertTrue(data['success'])
        self.assertEqual(data['user']['student_id'], '5')
        self.assertEqual(self.client.session[SESSION_VIEWER_KEY], 'u1')
        self.auth_client.sign_up.assert_called_once_with('aoi@example.com', 'secret', '5')

    def test_signup_requires_student_id(self):
        resp = self.post_json(reverse('accounts:signup'), {
            'email': 'aoi@example.com', 'password': 'secret',
        })
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()['code'], 'missing_student_id')
        self.auth_client.sign_up.assert_not_called()

    def test_signup_duplicate_student_id_never_reaches_provider(self):
        Student.objects.create(id='other', email='o@example.com', student_id='5')
        resp = self.post_json(reverse('accounts:signup'), {
            'email': 'aoi@example.com', 'password': 'secret', 'student_id': '5',
        })
        self.assertEqual(resp.status_code, 409)
        body = resp.json()
        self.assertFalse(body['success'])
        self.assertEqual(body['code'], 'duplicate_student_id')
        self.assertEqual(body['field'], 'student_id')
        self.auth_client.sign_up.assert_not_called()
        self.assertEqual(Student.objects.count(), 1)

    def test_signup_requires_credentials(self):
        resp = self.post_json(reverse('accounts:signup'), {'student_id': '5'})
        self.assertEqual(resp.status_code, 400)

    def test_signup_invalid_json(self):
        resp = self.client.post(reverse('accounts:signup'), data='not json', content_type='application/json')
        self.assertEqual(resp.status_code, 400)


class SigninTests(AccountsViewTestBase):
    """Tests for sign-in, session resume and sign-out."""

    def test_signin_existing_user(self):
        Student.objects.create(id='u1', email='aoi@example.com', student_id='5')
        self.auth_client.sign_in_with_password.return_value = {
            'access_token': 'tok',
            'user': {'id': 'u1', 'email': 'aoi@example.com', 'user_metadata': {}},
        }
        resp = self.post_json(reverse('accounts:signin'), {'email': 'aoi@example.com', 'password': 'pw'})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data['user']['id'], 'u1')
        self.assertEqual(data['access_token'], 'tok')
        self.assertEqual(self.client.session[SESSION_VIEWER_KEY], 'u1')

    def test_signin_rejected_credentials(self):
        self.auth_client.sign_in_with_password.side_effect = ValidationError(
            INVALID_FIELD, 'Invalid login credentials', field='credentials'
        )
        resp = self.post_json(reverse('accounts:signin'), {'email': 'aoi@example.com', 'password': 'bad'})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()['error'], 'Invalid login credentials')
        self.assertNotIn(SESSION_VIEWER_KEY, self.client.session)

    def test_resume_session_from_token(self):
        Student.objects.create(id='u1', email='aoi@example.com', student_id='5')
        self.auth_client.get_user.return_value = {'id': 'u1', 'email': 'aoi@example.com'}
        resp = self.post_json(reverse('accounts:resume_session'), {'access_token': 'tok'})
        self.assertEqual(resp.status_code, 200)
        self.auth_client.get_user.assert_called_once_with('tok')

    def test_signout_clears_session(self):
        user = Student.objects.create(id='u1', email='aoi@example.com', student_id='5')
        self.sign_in_as(user)
        resp = self.post_json(reverse('accounts:signout'))
        self.assertEqual(resp.status_code, 200)
        self.assertNotIn(SESSION_VIEWER_KEY, self.client.session)
        self.auth_client.sign_out.assert_not_called()

    def test_signout_revokes_provider_token(self):
        user = Student.objects.create(id='u1', email='aoi@example.com', student_id='5')
        self.sign_in_as(user)
        resp = self.post_json(reverse('accounts:signout'), {'access_token': 'tok'})
        self.assertEqual(resp.status_code, 200)
        self.auth_client.sign_out.assert_called_once_with('tok')
        self.assertNotIn(SESSION_VIEWER_KEY, self.client.session)

    def test_signout_keeps_session_when_provider_fails(self):
        user = Student.objects.create(id='u1', email='aoi@example.com', student_id='5')
        self.sign_in_as(user)
        self.auth_client.sign_out.side_effect = UpstreamError('Identity provider unavailable')
        resp = self.post_json(reverse('accounts:signout'), {'access_token': 'tok'})
        self.assertEqual(resp.status_code, 502)
        self.assertFalse(resp.json()['success'])
        self.assertEqual(self.client.session[SESSION_VIEWER_KEY], 'u1')

    def test_signin_rejects_non_object_body(self):
        resp = self.client.post(reverse('accounts:signin'), data='[]', content_type='application/json')
        self.assertEqual(resp.status_code, 400)
        self.auth_client.sign_in_with_password.assert_not_called()


class AccountSettingsTests(AccountsViewTestBase):
    """Tests for the settings endpoint."""

    def setUp(self):
        super().setUp()
        self.user = Student.objects.create(id='u1', email='aoi@example.com', student_id='5')
        self.other = Student.objects.create(id='u2', email='ren@example.com', student_id='6')
        self.sign_in_as(self.user)

    def test_requires_sign_in(self):
        self.client.logout()
        resp = self.client.get(reverse('accounts:settings'))
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()['code'], 'unauthenticated')

    def test_get_settings(self):
        resp = self.client.get(reverse('accounts:settings'))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()['user']['notification_days'], 1)

    def test_update_notification_days(self):
        resp = self.patch_json(reverse('accounts:settings'), {'notification_days': 3})
        self.assertEqual(resp.status_code, 200)
        self.user.refresh_from_db()
        self.assertEqual(self.user.notification_days, 3)

    def test_out_of_range_days_rejected_without_write(self):
        resp = self.patch_json(reverse('accounts:settings'), {'student_id': '9', 'notification_days': 31})
        self.assertEqual(resp.status_code, 400)
        self.user.refresh_from_db()
        self.assertEqual(self.user.student_id, '5')
        self.assertEqual(self.user.notification_days, 1)

    def test_duplicate_student_id_rejected(self):
        resp = self.patch_json(reverse('accounts:settings'), {'student_id': '6'})
        self.assertEqual(resp.status_code, 409)
        self.user.refresh_from_db()
        self.assertEqual(self.user.student_id, '5')

    def test_lookup_by_student_id(self):
        resp = self.client.get(reverse('accounts:lookup'), {'student_id': '6'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()['user']['id'], 'u2')

    def test_lookup_unknown_student_id(self):
        resp = self.client.get(reverse('accounts:lookup'), {'student_id': '99'})
        self.assertEqual(resp.status_code, 404)

    def test_list_users(self):
        resp = self.client.get(reverse('accounts:list_users'))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([u['student_id'] for u in resp.json()['users']], ['5', '6'])
