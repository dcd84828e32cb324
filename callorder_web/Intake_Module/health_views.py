"""
Health check endpoint for Docker healthchecks and monitoring.
"""
import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

logger = logging.getLogger(__name__)


@require_http_methods(["GET"])
def health_check(request):
    """
    Health check for the database and the config cache.

    Returns:
        - 200 OK if the database is accessible
        - 503 Service Unavailable if it is not
    """
    payload = {'service': 'callorder-backend'}

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        payload['database'] = 'connected'
    except DatabaseError as e:
        logger.error(f"Health check: database unavailable: {e}")
        payload.update({'status': 'unhealthy', 'database': 'disconnected', 'error': str(e)})
        return JsonResponse(payload, status=503)

    cache.set('healthz', 'ok', 5)
    payload['cache'] = 'ok' if cache.get('healthz') == 'ok' else 'unavailable'
    payload['status'] = 'healthy'
    return JsonResponse(payload, status=200)
