# tests/test_api_bible_client.py
"""
Tests for the API.Bible client and the shared GET retry helper.
"""

from unittest.mock import MagicMock

import pytest
import requests

from versefeed.services.scripture import ScriptureApiClient, ScriptureApiError, ScriptureNetworkError
from versefeed.utils.http_retry import get_with_retry


def _response(status=200, body=None, headers=None):
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    response.headers = headers or {}
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


def _session(*results):
    session = MagicMock()
    session.headers = {}
    session.get.side_effect = list(results)
    return session


@pytest.fixture
def no_sleep(monkeypatch):
    sleeps = []
    monkeypatch.setattr("versefeed.utils.http_retry.time.sleep", sleeps.append)
    return sleeps


# =============================================================================
# get_with_retry
# =============================================================================

def test_retry_on_server_error_then_success():
    sleeps = []
    session = _session(_response(503), _response(200, {"data": []}))

    response = get_with_retry(session, "http://api/bibles", sleep=sleeps.append)

    assert response.status_code == 200
    assert sleeps == [1]


def test_rate_limit_honours_retry_after():
    sleeps = []
    session = _session(_response(429, headers={"retry-after": "7"}), _response(200))

    get_with_retry(session, "http://api/bibles", sleep=sleeps.append)

    assert sleeps == [7]


def test_client_errors_are_not_retried():
    session = _session(_response(404), _response(200))
    response = get_with_retry(session, "http://api/bibles", sleep=lambda s: None)
    assert response.status_code == 404
    assert session.get.call_count == 1


def test_last_response_returned_after_exhausting_retries():
    sleeps = []
    session = _session(_response(500), _response(502), _response(503))
    response = get_with_retry(session, "http://api/bibles", sleep=sleeps.append)
    assert response.status_code == 503
    assert sleeps == [1, 2]


def test_connection_error_raised_after_last_attempt():
    error = requests.ConnectionError("refused")
    session = _session(error, error, error)
    with pytest.raises(requests.ConnectionError):
        get_with_retry(session, "http://api/bibles", sleep=lambda s: None)
    assert session.get.call_count == 3


# =============================================================================
# ScriptureApiClient
# =============================================================================

def _client(*results):
    session = _session(*results)
    return ScriptureApiClient(api_key="test-key", base_url="http://api/v1/", session=session), session


def test_client_sends_api_key_and_unwraps_data():
    client, session = _client(_response(200, {"data": [{"id": "abc"}], "meta": {}}))

    assert client.list_bibles() == [{"id": "abc"}]
    assert session.headers["api-key"] == "test-key"
    assert session.get.call_args[0][0] == "http://api/v1/bibles"


def test_get_passage_requests_plain_text():
    client, session = _client(_response(200, {"data": {"id": "JHN.3.16", "content": "For God"}}))

    client.get_passage("bible", "JHN.3.16")

    params = session.get.call_args[1]["params"]
    assert params["content-type"] == "text"
    assert params["include-verse-numbers"] == "false"


def test_upstream_error_keeps_status_and_message():
    client, _ = _client(_response(401, {"message": "Invalid API key"}))
    with pytest.raises(ScriptureApiError) as exc:
        client.get_bible("bible")
    assert exc.value.status == 401
    assert exc.value.message == "Invalid API key"


def test_missing_envelope_is_bad_gateway():
    client, _ = _client(_response(200, {"unexpected": True}))
    with pytest.raises(ScriptureApiError) as exc:
        client.get_chapter("bible", "JHN.3")
    assert exc.value.status == 502


def test_unreadable_body_is_bad_gateway():
    client, _ = _client(_response(200, ValueError("not json")))
    with pytest.raises(ScriptureApiError) as exc:
        client.get_verse("bible", "JHN.3.16")
    assert exc.value.status == 502


def test_unreachable_service_is_network_error(no_sleep):
    error = requests.ConnectionError("refused")
    client, _ = _client(error, error, error)
    with pytest.raises(ScriptureNetworkError) as exc:
        client.list_bibles()
    assert exc.value.status == 503
    assert no_sleep == [1, 2]


def test_connect_timeout_is_not_retried():
    session = _session(requests.ConnectTimeout("slow"), _response(200))
    with pytest.raises(requests.ConnectTimeout):
        get_with_retry(session, "http://api/bibles", sleep=lambda s: None)
    assert session.get.call_count == 1
