"""
Error types raised by the front desk services and the project-wide
DRF exception handler that renders them.

Every error carries a human-readable message and an HTTP status hint;
the handler normalises responses to
``{"ok": false, "error": {"code": ..., "message": ...}}``.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class AppError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Internal Server Error'
    default_code = 'app_error'


class InvalidInput(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'invalid_input'


class NoShiftConfigured(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'No shift found for this doctor on the given date'
    default_code = 'no_shift'


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class SlotConflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The doctor already has an appointment at this time'
    default_code = 'slot_conflict'


class SequenceExhausted(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'UHID sequence exhausted for this year'
    default_code = 'sequence_exhausted'


class IdentifierGenerationError(AppError):
    default_detail = 'Failed to generate identifier'
    default_code = 'id_generation_failed'


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('Unhandled error in %s', context.get('view').__class__.__name__, exc_info=exc)
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    code = getattr(exc, 'default_code', None) or 'api_error'
    if isinstance(resp.data, dict):
        message = resp.data.get('detail') or resp.data
    else:
        message = resp.data
    return Response({'ok': False, 'error': {'code': code, 'message': message}}, status=resp.status_code)
