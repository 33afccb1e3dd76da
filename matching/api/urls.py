"""
URL patterns for the matching REST API.

Endpoints:
- POST /api/v1/match/rows/<row_id>/trace/    - Diagnostic trace (no writes)
- POST /api/v1/match/rows/<row_id>/approve/  - Approve a URL for a row
- POST /api/v1/match/jobs/<job_id>/start/    - Process the next batch of a job
- POST /api/v1/match/jobs/<job_id>/requeue/  - Requeue unresolved rows
"""

from django.urls import path

from matching.api.views import approve_row_view, requeue_job, start_job, trace_row

app_name = 'matching_api'

urlpatterns = [
    path('match/rows/<uuid:row_id>/trace/', trace_row, name='trace_row'),
    path('match/rows/<uuid:row_id>/approve/', approve_row_view, name='approve_row'),
    path('match/jobs/<uuid:job_id>/start/', start_job, name='start_job'),
    path('match/jobs/<uuid:job_id>/requeue/', requeue_job, name='requeue_job'),
]
