"""
Site log form submission.

A site log is written together with its task rows, attendees and uploaded
files. The database rows share one transaction; stored files cannot be
rolled back with it, so every upload registers a compensation that deletes
the file again. When any step fails the transaction rolls back, the
compensations run in reverse order and the caller gets one generic error.
"""
import json
import logging

from django.db import DatabaseError, transaction

from archub.core.query_cache import Entity, Mutation, Notification
from archub.core.services import ServiceError
from archub.core.utils import create_activity
from .models import SiteLog, SiteLogFile
from .serializers import SiteLogFormSerializer
from .services import (
    site_logs_service, site_log_tasks_service, site_log_attendees_service, site_log_files_service
)

logger = logging.getLogger(__name__)

SAVE_ERROR = 'No se pudo guardar el registro de obra'
SITE_LOG_INVALIDATES = [(Entity.SITE_LOGS,), (Entity.ACTIVITIES,), (Entity.STATS,), (Entity.TIMELINE_EVENTS,)]


class Compensations:
    """Undo steps for work a database rollback does not reach."""

    def __init__(self):
        self._steps = []

    def register(self, fn, *args):
        self._steps.append((fn, args))

    def run(self):
        while self._steps:
            fn, args = self._steps.pop()
            try:
                fn(*args)
            except OSError as e:
                logger.warning(f"Compensation {getattr(fn, '__name__', fn)}{args} failed: {e}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            logger.info(f"Rolling back {len(self._steps)} stored file(s) after: {exc}")
            self.run()
        return False


def parse_site_log_form(data):
    """Normalise multipart form data (nested rows sent as JSON strings)."""
    values = {key: data.get(key) for key in ('project', 'log_date', 'weather', 'comments') if key in data}
    for key in ('tasks', 'attendees'):
        rows = data.get(key)
        if isinstance(rows, str):
            try:
                rows = json.loads(rows) if rows.strip() else []
            except ValueError:
                rows = None
        if rows is not None:
            values[key] = rows
    form = SiteLogFormSerializer(data=values)
    form.is_valid(raise_exception=True)
    return dict(form.validated_data)


def create_site_log(context, data, files=(), user=None):
    """Create a site log with its tasks, attendees and files as one unit."""
    values = parse_site_log_form(data)
    tasks = values.pop('tasks', [])
    attendees = values.pop('attendees', [])
    if not values.get('project'):
        values['project'] = context.get_state().project_id

    def persist(values):
        try:
            with Compensations() as undo, transaction.atomic():
                site_log = site_logs_service.create(values, created_by=user)
                site_log_id = site_log['id']
                site_log_tasks_service.add_rows(site_log_id, tasks)
                site_log_attendees_service.add_rows(site_log_id, attendees)
                for uploaded in files:
                    name, url = site_logs_service.upload_file(site_log_id, uploaded)
                    undo.register(site_logs_service.remove_file, name)
                    SiteLogFile.objects.create(
                        site_log_id=site_log_id,
                        file_url=url,
                        file_name=uploaded.name,
                        uploaded_by=user if user and user.is_authenticated else None,
                    )
        except ServiceError as e:
            raise ServiceError(SAVE_ERROR, original=e.original or e.message) from e
        except DatabaseError as e:
            logger.error(f"Error saving site log: {e}")
            raise ServiceError(SAVE_ERROR, original=e) from e
        return site_logs_service.get(site_log_id)

    def on_success(site_log):
        create_activity(
            activity_type='site_log_created',
            title=f"Registro de obra del {site_log['log_date']}",
            project=SiteLog.objects.select_related('project__organization').get(pk=site_log['id']).project,
            user=user,
        )

    mutation = Mutation(
        persist,
        invalidates=SITE_LOG_INVALIDATES,
        success_message=Notification('Registro creado', 'El registro de obra ha sido creado correctamente.'),
        error_message=SAVE_ERROR,
        on_success=on_success,
        pending_key=f"site-log-create:{getattr(user, 'pk', None)}",
    )
    return mutation.mutate(values)


def update_site_log(site_log_id, data):
    """Update the log fields only; rows and files have their own endpoints."""
    values = {key: data[key] for key in ('log_date', 'weather', 'comments') if key in data}
    mutation = Mutation(
        site_logs_service.update,
        invalidates=[(Entity.SITE_LOGS,), (Entity.TIMELINE_EVENTS,)],
        success_message=Notification('Registro actualizado', 'El registro de obra ha sido actualizado correctamente.'),
        error_message=SAVE_ERROR,
        pending_key=f'site-log-update:{site_log_id}',
    )
    return mutation.mutate(site_log_id, values)


def add_site_log_files(site_log_id, files, user=None, description=None):
    """Attach files to an existing site log; stored files are removed on failure."""
    site_logs_service.get_object(site_log_id)

    def persist(files):
        created = []
        try:
            with Compensations() as undo, transaction.atomic():
                for uploaded in files:
                    name, url = site_logs_service.upload_file(site_log_id, uploaded)
                    undo.register(site_logs_service.remove_file, name)
                    created.append(SiteLogFile.objects.create(
                        site_log_id=site_log_id,
                        file_url=url,
                        file_name=uploaded.name,
                        description=description,
                        uploaded_by=user if user and user.is_authenticated else None,
                    ))
        except DatabaseError as e:
            logger.error(f"Error attaching files to SiteLog {site_log_id}: {e}")
            raise ServiceError('Error al subir el archivo', original=e) from e
        return [site_log_files_service.get(instance.pk) for instance in created]

    mutation = Mutation(
        persist,
        invalidates=[(Entity.SITE_LOGS,)],
        success_message=Notification('Archivo subido', 'El archivo se ha subido correctamente.'),
        error_message='No se pudo subir el archivo',
    )
    return mutation.mutate(list(files))
