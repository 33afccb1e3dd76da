"""
API throttling classes for the matching endpoints.
"""

from rest_framework.throttling import UserRateThrottle


class TraceThrottle(UserRateThrottle):
    """
    Throttle for row trace endpoints.

    A trace re-runs searches and page fetches, so it spends search quota.
    Rate: 30 requests per hour per user.
    """

    rate = '30/hour'
    scope = 'match_trace'


class JobTriggerThrottle(UserRateThrottle):
    """
    Throttle for job start endpoints.

    Rate: 60 requests per hour per user.
    """

    rate = '60/hour'
    scope = 'match_job_trigger'
