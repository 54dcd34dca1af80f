"""Helpers that wrap every API payload in the shared JSON envelope"""
from rest_framework import status
from rest_framework.response import Response


def api_response(data=None, message='Success', status_code=status.HTTP_200_OK):
    """Build a `{success, status_code, message, data}` response"""
    return Response({
        'success': status_code < 400,
        'status_code': status_code,
        'message': message,
        'data': data,
    }, status=status_code)


def error_response(message, status_code=status.HTTP_400_BAD_REQUEST, errors=None):
    """Build the envelope used for failures"""
    return Response({
        'success': False,
        'status_code': status_code,
        'message': message,
        'errors': errors if errors is not None else [],
        'data': None,
    }, status=status_code)


def validation_error_response(errors):
    return error_response('Validation failed', status.HTTP_400_BAD_REQUEST, errors)
