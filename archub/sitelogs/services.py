import logging
import os
import time

from django.core.files.storage import default_storage
from django.db import DatabaseError

from archub.core.services import ModelService, ServiceError
from .models import SiteLog, SiteLogTask, SiteLogAttendee, SiteLogFile
from .serializers import (
    SiteLogSerializer, SiteLogTaskSerializer, SiteLogAttendeeSerializer, SiteLogFileSerializer
)

logger = logging.getLogger(__name__)

STORAGE_PREFIX = 'site-logs'


class SiteLogsService(ModelService):
    model = SiteLog
    serializer_class = SiteLogSerializer
    ordering = ('-log_date', '-id')
    select_related = ('project', 'created_by')
    prefetch_related = ('tasks__task__unit', 'attendees__contact', 'files__uploaded_by')
    scope_fields = {'project_id': 'project_id'}
    label = 'registros de obra'
    not_found_message = 'Registro de obra no encontrado'

    def upload_file(self, site_log_id, uploaded):
        """
        Store an uploaded file under site-logs/<site_log_id>/<timestamp>.<ext>

        Returns (storage name, public url). The caller owns the stored file
        until the SiteLogFile row that points to it is committed.
        """
        _, ext = os.path.splitext(uploaded.name)
        name = f"{STORAGE_PREFIX}/{site_log_id}/{int(time.time() * 1000)}{ext.lower()}"
        try:
            saved = default_storage.save(name, uploaded)
        except OSError as e:
            logger.error(f"Error uploading {uploaded.name} for SiteLog {site_log_id}: {e}")
            raise ServiceError('Error al subir el archivo', original=e) from e
        logger.info(f"Uploaded {uploaded.name} as {saved}")
        return saved, default_storage.url(saved)

    def remove_file(self, name):
        default_storage.delete(name)
        logger.info(f"Removed stored file {name}")


class SiteLogTasksService(ModelService):
    model = SiteLogTask
    serializer_class = SiteLogTaskSerializer
    ordering = ('id',)
    select_related = ('task__unit',)
    scope_fields = {'site_log_id': 'site_log_id'}
    label = 'tareas del registro'

    def add_rows(self, site_log_id, rows):
        """Insert already validated task rows for one site log"""
        try:
            return [self.model.objects.create(site_log_id=site_log_id, **row) for row in rows]
        except DatabaseError as e:
            logger.error(f"Error adding tasks to SiteLog {site_log_id}: {e}")
            raise ServiceError('Error al crear las tareas del registro', original=e) from e


class SiteLogAttendeesService(ModelService):
    model = SiteLogAttendee
    serializer_class = SiteLogAttendeeSerializer
    ordering = ('id',)
    select_related = ('contact',)
    scope_fields = {'site_log_id': 'site_log_id'}
    label = 'asistentes'

    def add_rows(self, site_log_id, rows):
        try:
            return [self.model.objects.create(site_log_id=site_log_id, **row) for row in rows]
        except DatabaseError as e:
            logger.error(f"Error adding attendees to SiteLog {site_log_id}: {e}")
            raise ServiceError('Error al registrar los asistentes', original=e) from e


class SiteLogFilesService(ModelService):
    model = SiteLogFile
    serializer_class = SiteLogFileSerializer
    select_related = ('uploaded_by',)
    scope_fields = {'site_log_id': 'site_log_id'}
    label = 'archivos'

    def delete(self, pk):
        instance = self.get_object(pk)
        super().delete(pk)
        name = instance.file_url.split(f"/{STORAGE_PREFIX}/", 1)[-1]
        try:
            default_storage.delete(f"{STORAGE_PREFIX}/{name}")
        except OSError as e:
            logger.warning(f"Could not remove stored file for SiteLogFile {pk}: {e}")


site_logs_service = SiteLogsService()
site_log_tasks_service = SiteLogTasksService()
site_log_attendees_service = SiteLogAttendeesService()
site_log_files_service = SiteLogFilesService()
