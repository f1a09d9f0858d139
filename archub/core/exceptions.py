"""
API exception handling.

Serializer errors keep DRF's per-field 400 body. Service errors become a
generic user message plus the provider message; anything else is logged
and answered with 500.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .services import ServiceError, NotFound

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None:
        return response

    if isinstance(exc, NotFound):
        return Response({'message': exc.message}, status=status.HTTP_404_NOT_FOUND)

    if isinstance(exc, ServiceError):
        return Response(
            {'message': exc.message, 'error': exc.original},
            status=status.HTTP_400_BAD_REQUEST,
        )

    view = context.get('view')
    logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'view'}: {exc}")
    return Response(
        {'message': 'Error inesperado del servidor'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
