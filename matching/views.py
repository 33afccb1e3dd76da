"""
Service-level views.

Includes health check endpoint for monitoring and load balancer checks.
"""

import logging

from django.conf import settings
from django.db import DatabaseError, connection
from django.http import JsonResponse

from matching.models import MatchRow, MatchRowStatus

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for the matching service.

    Endpoint: GET /api/health/
    No authentication required (for load balancer checks).

    Response fields:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "error"
        - search_provider: "configured" or "not_configured"
        - queued_rows: number of rows waiting for resolution

    Returns:
        JsonResponse, HTTP 200 for healthy, HTTP 503 for unhealthy
    """
    status = "healthy"
    http_status = 200

    database_status = "connected"
    queued_rows = None
    try:
        connection.ensure_connection()
        queued_rows = MatchRow.objects.filter(status=MatchRowStatus.QUEUED).count()
    except DatabaseError as e:
        logger.error(f"Health check database error: {e}")
        database_status = "error"
        status = "unhealthy"
        http_status = 503

    response_data = {
        "status": status,
        "database": database_status,
        "search_provider": "configured" if getattr(settings, "SERPAPI_KEY", "") else "not_configured",
        "queued_rows": queued_rows,
    }

    return JsonResponse(response_data, status=http_status)
