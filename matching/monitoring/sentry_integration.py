"""
Sentry error tracking for manufacturer URL resolution.

- Breadcrumbs for each resolution stage (domain, search, validation)
- Sensitive values (API keys, tokens, cookies) filtered before sending
- Exceptions captured with row and stage context

Usage:
    from matching.monitoring import capture_resolution_error

    try:
        index_store.upsert(entry)
    except Exception as e:
        capture_resolution_error(error=e, stage="index_upsert", row_id=row.id)
"""

import logging
from typing import Any, Dict, Optional

import sentry_sdk

logger = logging.getLogger(__name__)

# Sensitive fields to filter from Sentry events
SENSITIVE_FIELDS = {
    "cookies",
    "cookie",
    "api_key",
    "apikey",
    "api-key",
    "authorization",
    "password",
    "secret",
    "token",
}


def _filter_sensitive_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Replace values of sensitive keys, recursing into nested dicts.
    """
    if not isinstance(data, dict):
        return data

    filtered = {}
    for key, value in data.items():
        key_lower = str(key).lower()

        if any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
            filtered[key] = "[Filtered]"
        elif isinstance(value, dict):
            filtered[key] = _filter_sensitive_data(value)
        else:
            filtered[key] = value

    return filtered


def add_resolution_breadcrumb(
    stage: str,
    message: str,
    row_id: Optional[str] = None,
    level: str = "info",
    extra_data: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Add a breadcrumb for a resolution stage.

    Args:
        stage: Pipeline stage (domain, search, site_search, validation, decision)
        message: Description of the operation
        row_id: MatchRow id being resolved
        level: Log level (info, warning, error)
        extra_data: Additional context data
    """
    data = {"stage": stage}
    if row_id:
        data["row_id"] = str(row_id)
    if extra_data:
        data.update(_filter_sensitive_data(extra_data))

    try:
        sentry_sdk.add_breadcrumb(
            category="matching",
            message=message,
            level=level,
            data=data,
        )
    except Exception as e:
        logger.warning(f"Failed to add Sentry breadcrumb: {e}")


def capture_resolution_error(
    error: Exception,
    stage: str,
    row_id: Optional[str] = None,
    url: Optional[str] = None,
    extra_data: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Capture a resolution error to Sentry with context.

    Args:
        error: The exception that occurred
        stage: Pipeline stage where it occurred
        row_id: MatchRow id being resolved
        url: URL involved, if any
        extra_data: Additional context (filtered for sensitive data)
    """
    add_resolution_breadcrumb(
        stage=stage,
        message=f"Error: {type(error).__name__}",
        row_id=row_id,
        level="error",
        extra_data=extra_data,
    )

    try:
        with sentry_sdk.new_scope() as scope:
            scope.set_tag("matching.stage", stage)
            if row_id:
                scope.set_extra("row_id", str(row_id))
            if url:
                scope.set_extra("url", url)
            if extra_data:
                scope.set_extra("context", _filter_sensitive_data(extra_data))

            sentry_sdk.capture_exception(error)

    except Exception as e:
        logger.warning(f"Failed to capture exception to Sentry: {e}")
