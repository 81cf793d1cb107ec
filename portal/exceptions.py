import logging

from django.db import IntegrityError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


def _error(code, message, status):
    return Response({'ok': False, 'error': {'code': code, 'message': message}}, status=status)


def api_exception_handler(exc, context):
    # table services signal bad input / missing rows / store conflicts with plain exceptions
    if isinstance(exc, IntegrityError):
        return _error('conflict', str(exc), 409)
    if isinstance(exc, LookupError):
        return _error('not_found', str(exc), 404)
    if isinstance(exc, ValueError):
        return _error('invalid', str(exc), 400)

    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception("Unhandled API error", exc_info=exc)
        return _error('server_error', str(exc), 500)
    # normalize response
    detail = None
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = str(resp.data)
    code = getattr(exc, 'default_code', None) or 'api_error'
    return _error(code, detail, resp.status_code)
