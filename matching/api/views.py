"""
Matching API views.

Thin operator surface over the resolution engine:
- Row diagnostics (trace) without mutating the row
- Manual approval of a product page URL
- Job batch processing and requeueing

All endpoints require authentication.
"""

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from matching.api.throttling import JobTriggerThrottle, TraceThrottle
from matching.models import MatchJob, MatchRow
from matching.services.resolver import build_resolver
from matching.services.review import approve_row, requeue_rows
from matching.tasks import process_match_job

logger = logging.getLogger(__name__)


@extend_schema(
    tags=['Matching'],
    summary='Trace row resolution',
    description='''
    Re-run the resolution pipeline for a row and return every intermediate
    step (queries, domain, searches, candidate pools, validations, decision).
    The row and the source index are not modified.
    ''',
    request=None,
    responses={
        200: {'description': 'Trace of the resolution run'},
        404: {'description': 'Row not found'},
    },
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
@throttle_classes([TraceThrottle])
def trace_row(request, row_id):
    """Return a side-effect-free trace for a row."""
    if not MatchRow.objects.filter(id=row_id).exists():
        return Response({'error': 'Row not found'}, status=status.HTTP_404_NOT_FOUND)

    with build_resolver() as resolver:
        trace = resolver.debug_row_trace(row_id)

    return Response({'trace': trace})


@extend_schema(
    tags=['Matching'],
    summary='Approve a product page for a row',
    request={
        'application/json': {
            'type': 'object',
            'properties': {
                'url': {'type': 'string', 'format': 'uri', 'description': 'Approved product page URL'},
            },
            'required': ['url'],
        }
    },
    responses={
        200: {'description': 'Row approved'},
        400: {'description': 'Invalid or missing URL'},
        404: {'description': 'Row not found'},
    },
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def approve_row_view(request, row_id):
    """Mark a row resolved with a reviewer-approved URL."""
    url = request.data.get('url')
    if not url:
        return Response({'error': 'url is required'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        row = approve_row(row_id, url, approved_by=request.user.get_username())
    except MatchRow.DoesNotExist:
        return Response({'error': 'Row not found'}, status=status.HTTP_404_NOT_FOUND)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'ok': True,
        'row_id': str(row.id),
        'status': row.status,
        'resolved_url': row.resolved_url,
        'resolved_domain': row.resolved_domain,
        'confidence': row.confidence,
    })


@extend_schema(
    tags=['Matching'],
    summary='Process the next batch of a job',
    request={
        'application/json': {
            'type': 'object',
            'properties': {
                'limit': {'type': 'integer', 'minimum': 1, 'maximum': 100},
            },
        }
    },
    responses={
        202: {'description': 'Batch queued'},
        400: {'description': 'Invalid limit'},
        404: {'description': 'Job not found'},
    },
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
@throttle_classes([JobTriggerThrottle])
def start_job(request, job_id):
    """Queue processing of the next batch of queued rows."""
    if not MatchJob.objects.filter(id=job_id).exists():
        return Response({'error': 'Job not found'}, status=status.HTTP_404_NOT_FOUND)

    limit = request.data.get('limit')
    if limit is not None:
        try:
            limit = int(limit)
        except (TypeError, ValueError):
            return Response({'error': 'limit must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
        if not 1 <= limit <= 100:
            return Response({'error': 'limit must be between 1 and 100'}, status=status.HTTP_400_BAD_REQUEST)

    task = process_match_job.delay(str(job_id), limit)
    logger.info(f"Queued batch for job {job_id} (task {task.id})")

    return Response(
        {'job_id': str(job_id), 'task_id': task.id, 'status': 'queued'},
        status=status.HTTP_202_ACCEPTED,
    )


@extend_schema(
    tags=['Matching'],
    summary='Requeue unresolved rows of a job',
    request=None,
    responses={
        200: {'description': 'Rows requeued'},
        404: {'description': 'Job not found'},
    },
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def requeue_job(request, job_id):
    """Send unresolved rows back to the queue."""
    try:
        count = requeue_rows(job_id)
    except MatchJob.DoesNotExist:
        return Response({'error': 'Job not found'}, status=status.HTTP_404_NOT_FOUND)

    return Response({'job_id': str(job_id), 'requeued': count})
