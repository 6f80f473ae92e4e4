# utils/http_retry.py
"""
GET with retry for the scripture service.

API.Bible rate-limits per key and occasionally answers 5xx under load, so
every upstream GET goes through get_with_retry:

    from versefeed.utils.http_retry import get_with_retry

    response = get_with_retry(session, f"{base_url}/bibles", timeout=15)
    if response.ok:
        bibles = response.json()["data"]

What gets retried:
    429                 wait Retry-After seconds, else 2, 4, 8... (max 30)
    5xx                 wait 1, 2, 4...
    ConnectionError     wait 1, 2, 4...; re-raised after the last attempt
    Timeout             never, raised straight away (ConnectTimeout included)
    other 4xx           never, the response is returned for the caller to map

After the last attempt the last response is returned as-is, so callers
always map statuses in one place.
"""

import logging
import time
from typing import Optional

import requests

logger = logging.getLogger(__name__)

MAX_RATE_LIMIT_WAIT = 30


def _rate_limit_wait(response: requests.Response, attempt: int) -> int:
    retry_after = response.headers.get("retry-after")
    try:
        return int(retry_after)
    except (TypeError, ValueError):
        return min(2 ** (attempt + 1), MAX_RATE_LIMIT_WAIT)


def get_with_retry(
    session: requests.Session,
    url: str,
    params: Optional[dict] = None,
    timeout: int = 15,
    max_retries: int = 3,
    sleep=None,
) -> requests.Response:
    """
    GET url, retrying rate limits, server errors and refused connections.

    Args:
        session: Session carrying the api-key header
        url: Absolute URL
        params: Query parameters
        timeout: Per-attempt timeout in seconds
        max_retries: Total attempts, including the first
        sleep: Called with the wait in seconds (time.sleep by default)

    Returns:
        The first non-retryable response, or the last one received

    Raises:
        requests.ConnectionError: Every attempt failed to connect
        requests.Timeout: An attempt timed out
    """
    sleep = sleep or time.sleep
    response = None

    for attempt in range(max_retries):
        is_last = attempt == max_retries - 1
        try:
            response = session.get(url, params=params, timeout=timeout)
        except requests.Timeout:
            # ConnectTimeout is also a ConnectionError; timeouts are not retried
            raise
        except requests.ConnectionError as e:
            if is_last:
                raise
            wait = 2 ** attempt
            logger.warning(f"Could not connect to {url} ({e}), retrying in {wait}s")
            sleep(wait)
            continue

        if response.status_code == 429:
            wait = _rate_limit_wait(response, attempt)
            reason = "rate limited"
        elif response.status_code >= 500:
            wait = 2 ** attempt
            reason = f"status {response.status_code}"
        else:
            return response

        if not is_last:
            logger.warning(
                f"GET {url} {reason}, retrying in {wait}s ({attempt + 1}/{max_retries})"
            )
            sleep(wait)

    logger.warning(f"GET {url} still failing after {max_retries} attempts")
    return response
