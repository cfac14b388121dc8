"""Tests for events app models and views."""
import json
from datetime import timedelta

from django.test import TestCase, Client
from django.urls import reverse
from django.utils import timezone

from accounts.models import Student
from events.models import VENUE_UNSET, Event
from studyboard.session import SESSION_VIEWER_KEY


class EventModelTests(TestCase):

    def test_blank_venue_reads_as_unset(self):
        event = Event(title='Field trip', date_time=timezone.now())
        self.assertEqual(event.venue_label, VENUE_UNSET)
        self.assertFalse(event.has_venue)

    def test_venue_label(self):
        event = Event(title='Field trip', venue=' Museum ', date_time=timezone.now())
        self.assertEqual(event.venue_label, 'Museum')
        self.assertTrue(event.has_venue)

    def test_legacy_assignee_objects(self):
        event = Event(
            title='Club day',
            date_time=timezone.now(),
            assigned_user_id=[{'id': 'u1', 'name': 'A'}, {'id': 'u2', 'name': 'B'}],
        )
        self.assertEqual(event.audience.explicit_ids, frozenset({'u1', 'u2'}))


class EventViewTestBase(TestCase):

    def setUp(self):
        self.client = Client()
        self.alice = Student.objects.create(id='user-a', email='a@example.com', student_id='5')
        self.bob = Student.objects.create(id='user-b', email='b@example.com', student_id='6')
        self.sign_in_as(self.alice)

    def sign_in_as(self, user):
        session = self.client.session
        session[SESSION_VIEWER_KEY] = user.pk
        session.save()

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


class EventCRUDTests(EventViewTestBase):

    def test_create_event_without_venue(self):
        resp = self.post_json(reverse('events:create_event'), {
            'title': 'Sports day',
            'date_time': '2030-10-10T09:00:00+09:00',
        })
        self.assertEqual(resp.status_code, 200)
        event = resp.json()['event']
        self.assertEqual(event['venue'], VENUE_UNSET)
        self.assertTrue(event['is_for_all'])
        self.assertEqual(Event.objects.get().venue, '')

    def test_create_event_rejects_list_body(self):
        resp = self.client.post(reverse('events:create_event'), data='[]', content_type='application/json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(Event.objects.count(), 0)

    def test_create_event_requires_title(self):
        resp = self.post_json(reverse('events:create_event'), {'date_time': '2030-10-10T09:00:00Z'})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()['field'], 'title')

    def test_create_event_requires_date_time(self):
        resp = self.post_json(reverse('events:create_event'), {'title': 'Sports day'})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()['field'], 'date_time')

    def test_naive_date_time_read_in_viewer_timezone(self):
        self.client.cookies['user_timezone'] = 'Asia/Tokyo'
        self.post_json(reverse('events:create_event'), {
            'title': 'Assembly', 'date_time': '2030-04-01T08:30',
        })
        stored = Event.objects.get().date_time
        self.assertEqual((stored.hour, stored.minute), (23, 30))

    def test_update_event(self):
        event = Event.objects.create(title='Old', date_time=timezone.now(), is_for_all=True)
        resp = self.patch_json(reverse('events:event_detail', args=[event.id]), {'venue': 'Gym'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()['event']['venue'], 'Gym')

    def test_delete_event(self):
        event = Event.objects.create(title='Gone', date_time=timezone.now(), is_for_all=True)
        resp = self.client.delete(reverse('events:event_detail', args=[event.id]))
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(Event.objects.exists())


    def test_delete_by_other_student_forbidden(self):
        event = Event.objects.create(title='Kept', date_time=timezone.now(), is_for_all=True, created_by=self.bob)
        resp = self.client.delete(reverse('events:event_detail', args=[event.id]))
        self.assertEqual(resp.status_code, 403)
        self.assertTrue(Event.objects.filter(pk=event.pk).exists())


class EventListTests(EventViewTestBase):

    def setUp(self):
        super().setUp()
        now = timezone.now()
        Event.objects.create(title='Concert', venue='Hall', date_time=now + timedelta(days=5), is_for_all=True)
        Event.objects.create(
            title='Bake sale', date_time=now + timedelta(days=1), is_for_all=True, is_important=True,
        )
        Event.objects.create(title='Private', date_time=now, assigned_to=['user-b'])

    def titles(self, **params):
        resp = self.client.get(reverse('events:event_list'), params)
        self.assertEqual(resp.status_code, 200)
        return [e['title'] for e in resp.json()['events']]

    def test_only_visible_events_listed(self):
        self.assertEqual(self.titles(), ['Bake sale', 'Concert'])
        self.sign_in_as(self.bob)
        self.assertEqual(self.titles(), ['Private', 'Bake sale', 'Concert'])

    def test_filter_by_venue(self):
        self.assertEqual(self.titles(venue='hall'), ['Concert'])

    def test_filter_by_unset_venue(self):
        self.assertEqual(self.titles(venue=VENUE_UNSET), ['Bake sale'])

    def test_filter_by_title(self):
        self.assertEqual(self.titles(title='BAKE'), ['Bake sale'])

    def test_filter_important(self):
        self.assertEqual(self.titles(important='1'), ['Bake sale'])

    def test_sort_by_title(self):
        self.assertEqual(self.titles(sort='title'), ['Bake sale', 'Concert'])

    def test_hidden_event_detail_is_not_found(self):
        private = Event.objects.get(title='Private')
        resp = self.client.get(reverse('events:event_detail', args=[private.id]))
        self.assertEqual(resp.status_code, 404)
