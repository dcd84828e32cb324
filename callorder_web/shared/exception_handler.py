"""
DRF exception handler that renders IntakeError subclasses as JSON.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from shared.exceptions import IntakeError

logger = logging.getLogger(__name__)


def intake_exception_handler(exc, context):
    """
    Custom exception handler for the intake API.

    IntakeError subclasses carry their own status code; everything else goes
    through REST framework's default handler and gets the same envelope.
    """
    if isinstance(exc, IntakeError):
        if exc.status_code >= 500:
            logger.error("Upstream failure surfaced to client: %s", exc)
        return Response(
            {'success': False, 'error': exc.message, 'code': exc.code, 'details': exc.details},
            status=exc.status_code,
        )

    response = exception_handler(exc, context)

    if response is not None:
        message = 'An error occurred'
        if response.status_code == status.HTTP_400_BAD_REQUEST:
            message = 'Validation error'
        elif response.status_code == status.HTTP_401_UNAUTHORIZED:
            message = 'Authentication required'
        elif response.status_code == status.HTTP_403_FORBIDDEN:
            message = 'Permission denied'
        elif response.status_code == status.HTTP_404_NOT_FOUND:
            message = 'Resource not found'

        response.data = {
            'success': False,
            'error': message,
            'details': response.data,
        }
        return response

    logger.error("Unexpected error in %s: %s", context.get('view').__class__.__name__, exc, exc_info=True)
    return Response(
        {'success': False, 'error': 'Internal server error'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
