# services/scripture/api_bible_client.py
"""
API.Bible client.

Thin wrapper around the scripture.api.bible REST service. Every response
is expected in the envelope {"data": ..., "meta": ...}; anything else is
reported as a ScriptureApiError so callers see one exception type.
"""

import logging
from typing import Optional

import requests

from versefeed.core import config
from versefeed.utils.http_retry import get_with_retry

logger = logging.getLogger(__name__)


class ScriptureApiError(Exception):
    """Base exception for scripture service errors."""

    def __init__(self, message: str, status: int = 500):
        super().__init__(message)
        self.message = message
        self.status = status


class ScriptureNetworkError(ScriptureApiError):
    """Raised when the scripture service could not be reached."""

    def __init__(self, message: str = "No response from Bible API"):
        super().__init__(message, 503)


class ScriptureApiClient:
    """
    Client for API.Bible.

    Usage:
        client = ScriptureApiClient()

        bibles = client.list_bibles()
        passage = client.get_passage(bibles[0]["id"], "JHN.3.16")
        print(passage["content"])
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = config.BIBLE_API_KEY if api_key is None else api_key
        self.base_url = (base_url or config.BIBLE_API_BASE_URL).rstrip("/")
        self._request_timeout = timeout or config.REQUEST_TIMEOUT
        self.session = session or requests.Session()

        if not self.api_key:
            logger.warning("Bible API Key is missing or empty")

        self.session.headers.update({
            "api-key": self.api_key,
            "Accept": "application/json",
        })

    def _get(self, path: str, params: Optional[dict] = None):
        """
        GET a path and unwrap the data envelope.

        Raises:
            ScriptureApiError: Upstream answered with an error status or an
                unexpected body
            ScriptureNetworkError: No response was received
        """
        url = f"{self.base_url}{path}"
        try:
            response = get_with_retry(
                self.session, url, params=params, timeout=self._request_timeout
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.error(f"No response received from Bible API for {path}: {e}")
            raise ScriptureNetworkError()
        except requests.RequestException as e:
            logger.error(f"Error setting up Bible API request for {path}: {e}")
            raise ScriptureApiError("Error setting up request", 500)

        if not response.ok:
            try:
                message = response.json().get("message") or "Bible API error"
            except ValueError:
                message = "Bible API error"
            logger.error(
                f"Bible API responded with status {response.status_code}: {message}"
            )
            raise ScriptureApiError(message, response.status_code)

        try:
            body = response.json()
        except ValueError:
            raise ScriptureApiError("Invalid response structure from Bible API", 502)

        if not isinstance(body, dict) or body.get("data") is None:
            raise ScriptureApiError("Invalid response structure from Bible API", 502)

        return body["data"]

    # -------------------------------------------------------------------------
    # Bibles
    # -------------------------------------------------------------------------

    def list_bibles(self) -> list:
        """All Bibles visible to this API key (raw records)."""
        data = self._get("/bibles")
        if not isinstance(data, list):
            raise ScriptureApiError("Invalid response structure from Bible API", 502)
        return data

    def get_bible(self, bible_id: str) -> dict:
        """One Bible's metadata (raw record)."""
        return self._get(f"/bibles/{bible_id}")

    # -------------------------------------------------------------------------
    # Passages and verses
    # -------------------------------------------------------------------------

    def get_passage(self, bible_id: str, passage: str) -> dict:
        """
        Fetch a passage as plain text.

        Args:
            bible_id: Bible id
            passage: Passage id in OSIS-like form (e.g., "PSA.23.1")

        Returns:
            Raw passage record: {"id", "reference", "content", "copyright", ...}
        """
        return self._get(
            f"/bibles/{bible_id}/passages/{passage}",
            params={
                "content-type": "text",
                "include-titles": "false",
                "include-chapter-numbers": "false",
                "include-verse-numbers": "false",
            },
        )

    def get_chapter(self, bible_id: str, chapter_id: str) -> dict:
        """Chapter record including its next/previous links."""
        return self._get(f"/bibles/{bible_id}/chapters/{chapter_id}")

    def get_chapter_verses(self, bible_id: str, chapter_id: str) -> list:
        """Verse stubs ({"id", "reference", "orgId"}) for a chapter."""
        data = self._get(f"/bibles/{bible_id}/chapters/{chapter_id}/verses")
        if not isinstance(data, list):
            raise ScriptureApiError("Invalid response structure from Bible API", 502)
        return data

    def get_verse(self, bible_id: str, verse_id: str) -> dict:
        """One verse as plain text."""
        return self._get(
            f"/bibles/{bible_id}/verses/{verse_id}",
            params={
                "content-type": "text",
                "include-verse-numbers": "false",
            },
        )
