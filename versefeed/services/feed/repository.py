# services/feed/repository.py
"""
Verse repository: where the feed gets editions and candidate batches.

FeedState only depends on the VerseRepository interface. The concrete
HttpVerseRepository talks to the versefeed HTTP surface; the retry policy
for the default edition is applied by wrapping any repository in
RetryingVerseRepository.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional

import requests

from versefeed.core import config
from versefeed.services.scripture.models import (
    Edition,
    MalformedResponse,
    Verse,
    parse_editions,
    parse_verses,
)

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """A repository call failed (transport, status or shape)."""
    pass


class VerseRepository(ABC):
    """Source of editions and verse batches. Both calls may raise."""

    @abstractmethod
    def list_editions(self) -> List[Edition]:
        ...

    @abstractmethod
    def fetch_verse_batch(self, edition_id: str) -> List[Verse]:
        """A fresh pool of candidate verses for an edition."""
        ...


class HttpVerseRepository(VerseRepository):
    """
    Repository backed by the versefeed HTTP API.

    Usage:
        repo = HttpVerseRepository("http://127.0.0.1:5055/api")
        editions = repo.list_editions()
        batch = repo.fetch_verse_batch(editions[0].id)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or config.VERSEFEED_API_URL).rstrip("/")
        self._request_timeout = timeout or config.REQUEST_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def _get_json(self, path: str) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, timeout=self._request_timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            raise RepositoryError(f"Request to {url} failed: {e}")
        except ValueError as e:
            raise RepositoryError(f"Invalid JSON from {url}: {e}")

        if not isinstance(body, dict):
            raise RepositoryError(f"Unexpected response body from {url}")
        return body

    def list_editions(self) -> List[Edition]:
        body = self._get_json("/editions")
        try:
            return parse_editions(body.get("editions", []))
        except MalformedResponse as e:
            raise RepositoryError(str(e))

    def fetch_verse_batch(self, edition_id: str) -> List[Verse]:
        body = self._get_json(f"/verses/{edition_id}")
        try:
            return parse_verses(body.get("verses", []))
        except MalformedResponse as e:
            raise RepositoryError(str(e))


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry for one designated edition.

    Attributes:
        edition_id: Edition whose batch requests are retried
        max_attempts: Total attempts, including the first
        delay_ms: Fixed delay between attempts
    """
    edition_id: Optional[str]
    max_attempts: int = 3
    delay_ms: int = 500

    @classmethod
    def from_config(cls) -> "RetryPolicy":
        return cls(
            edition_id=config.DEFAULT_EDITION_ID,
            max_attempts=config.RETRY_MAX_ATTEMPTS,
            delay_ms=config.RETRY_DELAY_MS,
        )

    def attempts_for(self, edition_id: str) -> int:
        if self.edition_id and edition_id == self.edition_id:
            return max(1, self.max_attempts)
        return 1


class RetryingVerseRepository(VerseRepository):
    """
    Applies a RetryPolicy to fetch_verse_batch.

    Calls for the policy's edition are attempted up to max_attempts times
    with a fixed delay in between; every other edition gets one attempt.
    The last failure is re-raised.
    """

    def __init__(
        self,
        inner: VerseRepository,
        policy: RetryPolicy,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.inner = inner
        self.policy = policy
        self._sleep = sleep

    def list_editions(self) -> List[Edition]:
        return self.inner.list_editions()

    def fetch_verse_batch(self, edition_id: str) -> List[Verse]:
        attempts = self.policy.attempts_for(edition_id)
        for attempt in range(1, attempts + 1):
            try:
                return self.inner.fetch_verse_batch(edition_id)
            except Exception as e:
                if attempt >= attempts:
                    raise
                logger.warning(
                    f"Verse batch request failed for {edition_id} "
                    f"(attempt {attempt}/{attempts}), retrying: {e}"
                )
                self._sleep(self.policy.delay_ms / 1000)
