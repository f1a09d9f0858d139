"""Utility functions for the activity feed, role checks and cached responses"""
import logging

from django.db import DatabaseError, transaction
from rest_framework import status
from rest_framework.response import Response

from .models import Activity
from .query_cache import query_client
from .services import NotFound

logger = logging.getLogger(__name__)


def is_admin_user(user):
    """
    Check if user is an Archub administrator.
    Returns True if the user has the 'admin' role, or is a Django
    superuser/staff account.
    """
    if not user or not user.is_authenticated:
        return False
    return getattr(user, 'role', None) == 'admin' or user.is_superuser or user.is_staff


def create_activity(activity_type=None, title=None, organization=None, project=None,
                    user=None, description=None, request=None):
    """
    Create an activity feed entry

    Args:
        activity_type: One of Activity.TYPE_CHOICES (project_created, ...)
        title: Short human-readable title
        organization: Organization the activity belongs to (defaults to project's)
        project: Optional project
        user: Optional user override (defaults to request.user if request provided)
        description: Optional longer text
        request: Django request object - optional if user is provided
    """
    activity_user = user
    if activity_user is None and request is not None and hasattr(request, 'user'):
        activity_user = request.user
    if organization is None and project is not None:
        organization = project.organization

    if not activity_type or not title or organization is None:
        logger.warning(
            f"Activity creation skipped: missing required fields "
            f"(type={activity_type}, title={title}, organization={organization})"
        )
        return None

    try:
        # savepoint so a failed feed insert does not poison the caller's transaction
        with transaction.atomic():
            return Activity.objects.create(
                type=activity_type,
                title=title,
                description=description,
                organization=organization,
                project=project,
                user=activity_user if activity_user and activity_user.is_authenticated else None,
            )
    except DatabaseError as e:
        # Don't fail the main operation if the feed insert fails
        logger.error(f"Failed to create activity: {e}")
        return None


def query_response(key, fetcher, options=None):
    """Serve a list/detail read through the query cache"""
    result = query_client.query(key, fetcher, options)
    if result.is_error:
        raise result.error
    return Response(result.data)


def mutation_response(result, success_status=status.HTTP_200_OK):
    """Translate a MutationResult into an HTTP response"""
    if result is None:
        return Response(
            {'message': 'La operación ya está en curso'},
            status=status.HTTP_409_CONFLICT,
        )
    if not result.ok:
        error = result.error
        return Response(
            {
                'message': error.message,
                'error': error.original,
                'notification': result.notification.as_dict() if result.notification else None,
            },
            status=status.HTTP_404_NOT_FOUND if isinstance(error, NotFound) else status.HTTP_400_BAD_REQUEST,
        )
    if success_status == status.HTTP_204_NO_CONTENT:
        return Response(status=success_status)
    return Response(result.data, status=success_status)
