"""
Celery configuration for the Manufacturer URL Matching service.

Row resolution runs on the "matching" queue so that slow manufacturer
sites never hold up housekeeping tasks on the default queue.
"""

import os
from celery import Celery

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("manufacturer_matching")

# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

app.conf.task_queues = {
    "matching": {
        "exchange": "matching",
        "routing_key": "matching",
    },
    "default": {
        "exchange": "default",
        "routing_key": "default",
    },
}

# Default task routing
app.conf.task_default_queue = "default"
app.conf.task_default_exchange = "default"
app.conf.task_default_routing_key = "default"

app.conf.task_routes = {
    "matching.tasks.resolve_match_row": {"queue": "matching"},
    "matching.tasks.process_match_job": {"queue": "matching"},
    "matching.tasks.requeue_match_job": {"queue": "default"},
}
