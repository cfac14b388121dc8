"""
Single retry/timeout policy for calls that leave the process.

Every identity provider request and every database read made by a view goes
through call_with_retry(). Only transient failures are retried, and only when
STORE_MAX_ATTEMPTS is above 1; the default is a single attempt.
"""
import logging
import time

import requests
from django.conf import settings
from django.db import OperationalError

from .errors import UpstreamError

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (
    requests.exceptions.Timeout,
    requests.exceptions.ConnectionError,
    OperationalError,
)


def call_with_retry(func, *args, **kwargs):
    """
    Call func(*args, **kwargs) under the configured retry policy.

    Raises:
        UpstreamError: when every attempt failed with a transient error.
            The last underlying exception is chained as __cause__.
    """
    attempts = max(1, int(getattr(settings, 'STORE_MAX_ATTEMPTS', 1)))
    backoff = float(getattr(settings, 'STORE_RETRY_BACKOFF_SECONDS', 0))
    name = getattr(func, '__qualname__', repr(func))

    for attempt in range(1, attempts + 1):
        try:
            return func(*args, **kwargs)
        except TRANSIENT_ERRORS as e:
            if attempt >= attempts:
                logger.error(f"{name} failed after {attempt} attempt(s): {e}")
                raise UpstreamError(f"Upstream call failed: {e}") from e
            logger.warning(f"{name} attempt {attempt}/{attempts} failed: {e}; retrying")
            if backoff:
                time.sleep(backoff * attempt)


def fetch(queryset):
    """Evaluate a queryset into a list under the retry policy."""
    return call_with_retry(list, queryset)
