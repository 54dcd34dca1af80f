"""
Error types and the DRF exception handler.

Business rules raise `ApiError(status_code, message)`; the handler renders it,
and every other DRF/Django error, in the failure envelope.
"""
import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404, JsonResponse
from rest_framework import exceptions, status
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ApiError(exceptions.APIException):
    """An error carrying the HTTP status and message shown to the client"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request failed'
    default_code = 'error'

    def __init__(self, status_code, message, errors=None):
        self.status_code = status_code
        self.message = message
        self.errors = errors
        super().__init__(detail=message)


def _message_for(exc, response):
    if isinstance(exc, ApiError):
        return exc.message
    if isinstance(exc, exceptions.ValidationError):
        return 'Validation failed'
    if isinstance(exc, (Http404, exceptions.NotFound)):
        return 'Resource not found'
    detail = getattr(exc, 'detail', None)
    if isinstance(detail, str):
        return detail
    if response is not None and isinstance(response.data, dict) and 'detail' in response.data:
        return str(response.data['detail'])
    return 'Request failed'


def api_exception_handler(exc, context):
    """Render API errors as `{success: false, status_code, message, errors, data: null}`"""
    if isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()

    response = exception_handler(exc, context)
    if response is None:
        # Unhandled errors propagate to Django's handler500
        return None

    errors = []
    if isinstance(exc, ApiError):
        errors = exc.errors or []
    elif isinstance(exc, exceptions.ValidationError):
        errors = response.data

    message = _message_for(exc, response)
    request = context.get('request')
    path = request.path if request is not None else ''
    if response.status_code >= 500:
        logger.error(f"{response.status_code} {path}: {message}")
    else:
        logger.warning(f"{response.status_code} {path}: {message}")

    response.data = {
        'success': False,
        'status_code': response.status_code,
        'message': message,
        'errors': errors,
        'data': None,
    }
    return response


def route_not_found(request, exception=None):
    """handler404 for URLs no route matched"""
    logger.warning(f"404 {request.method} {request.path}")
    return JsonResponse({
        'success': False,
        'status_code': 404,
        'message': 'Route not found',
        'data': None,
    }, status=404)


def server_error(request):
    """handler500 for exceptions that escaped the API layer"""
    logger.exception(f"500 {request.method} {request.path}")
    return JsonResponse({
        'success': False,
        'status_code': 500,
        'message': 'Internal server error',
        'data': None,
    }, status=500)
