# exceptions.py
from rest_framework.views import exception_handler
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework import status
from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.db.models import ProtectedError
import logging
from django.conf import settings

logger = logging.getLogger(__name__)


class InvalidTransition(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'This action is not allowed for the order in its current status.'
    default_code = 'invalid_transition'


class AuthorizationRequired(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Admin authorization is required for this action.'
    default_code = 'authorization_required'


STATUS_MESSAGES = {
    400: 'Validation error',
    401: 'Authentication required',
    403: 'Permission denied',
    404: 'Resource not found',
    405: 'Method not allowed',
    409: 'Conflict',
    500: 'Internal server error',
}


def custom_exception_handler(exc, context):
    """
    Custom exception handler for the POS API
    """
    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    if response is not None:
        response.data = {
            'error': True,
            'message': STATUS_MESSAGES.get(response.status_code, 'An error occurred'),
            'details': response.data,
            'status_code': response.status_code
        }

    # Handle Django ValidationError
    elif isinstance(exc, ValidationError):
        logger.warning(f"Validation Error: {exc}")
        response = Response({
            'error': True,
            'message': 'Validation error',
            'details': {'non_field_errors': exc.messages},
            'status_code': 400
        }, status=status.HTTP_400_BAD_REQUEST)

    # Rows still referenced elsewhere (e.g. a menu item already sold)
    elif isinstance(exc, ProtectedError):
        logger.warning(f"Protected Error: {exc}")
        response = Response({
            'error': True,
            'message': 'Validation error',
            'details': {'error': 'This record is referenced by other records and cannot be deleted'},
            'status_code': 400
        }, status=status.HTTP_400_BAD_REQUEST)

    # Handle Django IntegrityError
    elif isinstance(exc, IntegrityError):
        logger.error(f"Integrity Error: {exc}")
        response = Response({
            'error': True,
            'message': 'Database integrity error',
            'details': {'error': 'This operation violates database constraints'},
            'status_code': 400
        }, status=status.HTTP_400_BAD_REQUEST)

    # Handle unexpected errors
    else:
        logger.error(f"Unexpected Error: {exc}", exc_info=exc)
        response = Response({
            'error': True,
            'message': 'An unexpected error occurred',
            'details': {'error': str(exc)} if settings.DEBUG else {},
            'status_code': 500
        }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return response
