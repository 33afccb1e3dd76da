"""
Public URL checks applied before any candidate page is fetched.

Search results and site-search links are untrusted input. Fetching them from
inside the worker network must never reach loopback, private ranges or the
cloud metadata endpoint.
"""

import ipaddress
from urllib.parse import urlparse

BLOCKED_HOSTNAMES = {"localhost", "metadata.google.internal"}

BLOCKED_SUFFIXES = (".local", ".localhost", ".internal")


def is_safe_public_url(url: str) -> bool:
    """
    Check that a URL is an http(s) URL pointing at a public host.

    Args:
        url: Candidate URL string

    Returns:
        True if the URL may be fetched
    """
    try:
        parsed = urlparse(url)
        host = parsed.hostname
    except ValueError:
        return False

    if parsed.scheme not in ("http", "https") or not host:
        return False

    host = host.lower().rstrip(".")
    if host in BLOCKED_HOSTNAMES or host.endswith(BLOCKED_SUFFIXES):
        return False

    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        # Not an IP literal
        return True

    return not (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_multicast
        or address.is_reserved
        or address.is_unspecified
    )
