"""
Monitoring helpers for the matching service.

Sentry error tracking with resolution context. Sentry itself is initialised
in settings/base.py when SENTRY_DSN is set; without a DSN every call here is
a no-op inside the SDK.
"""

from .sentry_integration import add_resolution_breadcrumb, capture_resolution_error

__all__ = [
    "add_resolution_breadcrumb",
    "capture_resolution_error",
]
