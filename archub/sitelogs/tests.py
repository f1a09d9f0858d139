"""
Tests for site logs: multipart create, file attachments and rollback of stored files
"""
import json
import os
import shutil
import tempfile
from unittest import mock

from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from django.test import TestCase, override_settings
from rest_framework import status
from archub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from archub.core.models import Activity
from archub.context.store import UserContextStore
from archub.sitelogs.models import SiteLog, SiteLogFile, SiteLogTask, SiteLogAttendee
from archub.sitelogs.workflows import Compensations, SAVE_ERROR, create_site_log, parse_site_log_form


def stored_files(root):
    found = []
    for directory, _, names in os.walk(root):
        found.extend(os.path.join(directory, name) for name in names)
    return found


class CompensationsTests(TestCase):

    def test_runs_in_reverse_order_on_error(self):
        calls = []
        with self.assertRaises(RuntimeError):
            with Compensations() as undo:
                undo.register(calls.append, 'first')
                undo.register(calls.append, 'second')
                raise RuntimeError('boom')
        self.assertEqual(calls, ['second', 'first'])

    def test_nothing_runs_on_success(self):
        calls = []
        with Compensations() as undo:
            undo.register(calls.append, 'first')
        self.assertEqual(calls, [])

    def test_failing_step_does_not_stop_the_rest(self):
        calls = []
        with self.assertRaises(RuntimeError):
            with Compensations() as undo:
                undo.register(calls.append, 'first')
                undo.register(mock.Mock(side_effect=OSError('gone')))
                raise RuntimeError('boom')
        self.assertEqual(calls, ['first'])


class ParseSiteLogFormTests(TestCase):

    def setUp(self):
        cache.clear()

    def test_json_encoded_rows(self):
        task = TestDataFactory.create_task()
        values = parse_site_log_form({
            'log_date': '2024-05-02',
            'weather': 'Lluvia',
            'tasks': json.dumps([{'task': task.id, 'quantity': '12.5'}]),
            'attendees': '',
        })
        self.assertEqual(values['tasks'][0]['task'], task)
        self.assertEqual(values['attendees'], [])
        self.assertEqual(values['weather'], 'Lluvia')

    def test_unknown_weather_rejected(self):
        from rest_framework.exceptions import ValidationError
        with self.assertRaises(ValidationError):
            parse_site_log_form({'log_date': '2024-05-02', 'weather': 'Granizo'})


class SiteLogWorkflowTests(TestCase):
    """A site log and everything attached to it is saved as one unit"""

    def setUp(self):
        cache.clear()
        self.media_root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.media_root, ignore_errors=True)
        settings_override = override_settings(MEDIA_ROOT=self.media_root)
        settings_override.enable()
        self.addCleanup(settings_override.disable)

        self.user = TestDataFactory.create_user()
        self.organization = TestDataFactory.create_organization(owner=self.user)
        self.project = TestDataFactory.create_project(organization=self.organization)
        self.context = UserContextStore(user=self.user)
        self.context.set_user_context(organization_id=self.organization.id, project_id=self.project.id)
        self.task = TestDataFactory.create_task()
        self.contact = TestDataFactory.create_contact(organization=self.organization)

    def _form(self):
        return {
            'log_date': '2024-05-02',
            'weather': 'Soleado',
            'comments': 'Hormigonado de losa',
            'tasks': [{'task': self.task.id, 'quantity': '3.5', 'notes': 'Sector norte'}],
            'attendees': [{'contact': self.contact.id, 'role': 'Capataz'}],
        }

    def test_create_with_rows_and_files(self):
        files = [
            SimpleUploadedFile('plano.pdf', b'%PDF-1.4', content_type='application/pdf'),
            SimpleUploadedFile('foto.JPG', b'\xff\xd8\xff', content_type='image/jpeg'),
        ]
        result = create_site_log(self.context, self._form(), files=files, user=self.user)

        self.assertTrue(result.ok)
        self.assertEqual(result.notification.title, 'Registro creado')
        site_log = SiteLog.objects.get(pk=result.data['id'])
        self.assertEqual(site_log.project, self.project)
        self.assertEqual(site_log.created_by, self.user)
        self.assertEqual(len(result.data['tasks']), 1)
        self.assertEqual(result.data['attendees'][0]['role'], 'Capataz')
        self.assertEqual(sorted(f['file_name'] for f in result.data['files']), ['foto.JPG', 'plano.pdf'])
        for row in result.data['files']:
            self.assertIn(f'/site-logs/{site_log.id}/', row['file_url'])
        self.assertEqual(len(stored_files(self.media_root)), 2)
        self.assertTrue(Activity.objects.filter(type='site_log_created', project=self.project).exists())

    def test_failure_after_upload_removes_stored_files(self):
        files = [
            SimpleUploadedFile('plano.pdf', b'%PDF-1.4', content_type='application/pdf'),
            SimpleUploadedFile('foto.jpg', b'\xff\xd8\xff', content_type='image/jpeg'),
        ]
        with mock.patch.object(SiteLogFile.objects, 'create', side_effect=DatabaseError('disk quota exceeded')):
            result = create_site_log(self.context, self._form(), files=files, user=self.user)

        self.assertFalse(result.ok)
        self.assertEqual(result.error.message, SAVE_ERROR)
        self.assertEqual(result.notification.description, SAVE_ERROR)
        self.assertFalse(SiteLog.objects.exists())
        self.assertFalse(SiteLogTask.objects.exists())
        self.assertFalse(SiteLogAttendee.objects.exists())
        self.assertEqual(stored_files(self.media_root), [])
        self.assertFalse(Activity.objects.filter(type='site_log_created').exists())

    def test_failed_upload_rolls_back_rows(self):
        files = [
            SimpleUploadedFile('plano.pdf', b'%PDF-1.4', content_type='application/pdf'),
            SimpleUploadedFile('foto.jpg', b'\xff\xd8\xff', content_type='image/jpeg'),
        ]
        from django.core.files.storage import default_storage
        real_save = default_storage.save
        calls = []

        def flaky_save(name, content, *args, **kwargs):
            calls.append(name)
            if len(calls) == 2:
                raise OSError('storage unavailable')
            return real_save(name, content, *args, **kwargs)

        with mock.patch.object(default_storage, 'save', side_effect=flaky_save):
            result = create_site_log(self.context, self._form(), files=files, user=self.user)

        self.assertFalse(result.ok)
        self.assertEqual(result.error.message, SAVE_ERROR)
        self.assertFalse(SiteLog.objects.exists())
        self.assertEqual(stored_files(self.media_root), [])


class SiteLogAPITests(TestCase):
    """Site log endpoints"""

    def setUp(self):
        cache.clear()
        self.media_root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.media_root, ignore_errors=True)
        settings_override = override_settings(MEDIA_ROOT=self.media_root)
        settings_override.enable()
        self.addCleanup(settings_override.disable)

        self.user = TestDataFactory.create_user()
        self.organization = TestDataFactory.create_organization(owner=self.user)
        self.project = TestDataFactory.create_project(organization=self.organization)
        UserContextStore(user=self.user).set_user_context(
            organization_id=self.organization.id, project_id=self.project.id
        )
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_multipart_create(self):
        task = TestDataFactory.create_task()
        data = {
            'log_date': '2024-06-10',
            'weather': 'Nublado',
            'tasks': json.dumps([{'task': task.id, 'quantity': '2'}]),
            'files': [SimpleUploadedFile('avance.pdf', b'%PDF-1.4', content_type='application/pdf')],
        }
        response = self.client.post('/api/v1/site-logs/', data, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['weather'], 'Nublado')
        self.assertEqual(len(response.data['files']), 1)
        self.assertEqual(len(response.data['tasks']), 1)

    def test_list_newest_first_and_refetched_after_create(self):
        TestDataFactory.create_site_log(project=self.project, log_date='2024-01-01')
        self.assertEqual(len(self.client.get('/api/v1/site-logs/').data), 1)
        self.client.post('/api/v1/site-logs/', {'log_date': '2024-03-01'}, format='json')
        response = self.client.get('/api/v1/site-logs/')
        self.assertEqual([row['log_date'] for row in response.data], ['2024-03-01', '2024-01-01'])

    def test_list_disabled_without_project(self):
        UserContextStore(user=self.user).set_user_context(project_id=None)
        TestDataFactory.create_site_log(project=self.project)
        self.assertEqual(self.client.get('/api/v1/site-logs/').data, [])

    def test_missing_log_date_rejected(self):
        response = self.client.post('/api/v1/site-logs/', {'weather': 'Soleado'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(SiteLog.objects.exists())

    def test_update(self):
        site_log = TestDataFactory.create_site_log(project=self.project)
        response = self.client.patch(f'/api/v1/site-logs/{site_log.id}/', {'weather': 'Tormenta'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['weather'], 'Tormenta')

    def test_attach_and_remove_file(self):
        site_log = TestDataFactory.create_site_log(project=self.project)
        response = self.client.post(
            f'/api/v1/site-logs/{site_log.id}/files/',
            {'files': [SimpleUploadedFile('acta.pdf', b'%PDF-1.4')], 'description': 'Acta de inicio'},
            format='multipart',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data[0]['description'], 'Acta de inicio')
        self.assertEqual(len(stored_files(self.media_root)), 1)

        file_id = response.data[0]['id']
        response = self.client.delete(f'/api/v1/site-log-files/{file_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(SiteLogFile.objects.filter(pk=file_id).exists())
        self.assertEqual(stored_files(self.media_root), [])

    def test_files_for_missing_log_is_404(self):
        response = self.client.post(
            '/api/v1/site-logs/99999/files/',
            {'files': [SimpleUploadedFile('acta.pdf', b'%PDF-1.4')]},
            format='multipart',
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
