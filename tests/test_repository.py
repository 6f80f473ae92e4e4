# tests/test_repository.py
"""
Tests for the verse repository: retry policy and the HTTP implementation.
"""

from unittest.mock import MagicMock

import pytest
import requests

from versefeed.services.feed import (
    FeedStatus,
    HttpVerseRepository,
    RepositoryError,
    RetryingVerseRepository,
    RetryPolicy,
)

from conftest import DEFAULT_EDITION_ID, KJV_ID, StubRepository, make_verses


POLICY = RetryPolicy(edition_id=DEFAULT_EDITION_ID, max_attempts=3, delay_ms=500)


def _retrying(stub):
    sleeps = []
    return RetryingVerseRepository(stub, POLICY, sleep=sleeps.append), sleeps


# =============================================================================
# RetryPolicy / RetryingVerseRepository
# =============================================================================

def test_policy_attempts_only_for_designated_edition():
    assert POLICY.attempts_for(DEFAULT_EDITION_ID) == 3
    assert POLICY.attempts_for(KJV_ID) == 1
    assert RetryPolicy(edition_id=None).attempts_for(DEFAULT_EDITION_ID) == 1


def test_default_edition_succeeds_on_third_attempt():
    stub = StubRepository(batches=[
        RepositoryError("503"),
        RepositoryError("503"),
        make_verses(1, 4),
    ])
    repo, sleeps = _retrying(stub)

    verses = repo.fetch_verse_batch(DEFAULT_EDITION_ID)

    assert [v.id for v in verses] == ["GEN.1.1", "GEN.1.2", "GEN.1.3"]
    assert len(stub.calls) == 3
    assert sleeps == [0.5, 0.5]


def test_default_edition_gives_up_after_max_attempts():
    stub = StubRepository(default=RepositoryError("down"))
    repo, sleeps = _retrying(stub)

    with pytest.raises(RepositoryError):
        repo.fetch_verse_batch(DEFAULT_EDITION_ID)
    assert len(stub.calls) == 3
    assert len(sleeps) == 2


def test_other_editions_get_one_attempt():
    stub = StubRepository(default=RepositoryError("down"))
    repo, sleeps = _retrying(stub)

    with pytest.raises(RepositoryError):
        repo.fetch_verse_batch(KJV_ID)
    assert stub.calls == [KJV_ID]
    assert sleeps == []


def test_feed_reload_with_retry_success(make_feed, editions):
    stub = StubRepository(batches=[
        RepositoryError("503"),
        RepositoryError("503"),
        make_verses(1, 4),
    ])
    repo, _ = _retrying(stub)
    feed = make_feed(repo, background=lambda fn: None)
    feed.initialize(editions)

    assert sorted(v.id for v in feed.buffer) == ["GEN.1.1", "GEN.1.2", "GEN.1.3"]
    assert len(stub.calls) == 3


def test_feed_reload_falls_back_after_three_failures(make_feed, editions):
    stub = StubRepository(default=RepositoryError("down"))
    repo, _ = _retrying(stub)
    feed = make_feed(repo, background=lambda fn: None)
    feed.initialize(editions)

    assert len(stub.calls) == 3
    assert feed.status == FeedStatus.READY
    assert len(feed.buffer) >= 1
    assert all(v.id.startswith("fallback-") for v in feed.buffer)


def test_list_editions_not_retried():
    stub = StubRepository(editions=RepositoryError("down"))
    repo, sleeps = _retrying(stub)
    with pytest.raises(RepositoryError):
        repo.list_editions()
    assert sleeps == []


# =============================================================================
# HttpVerseRepository
# =============================================================================

def _session(body=None, status_error=None, get_error=None):
    session = MagicMock()
    response = MagicMock()
    response.json.return_value = body
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    session.get.return_value = response
    if get_error is not None:
        session.get.side_effect = get_error
    return session


def test_http_repository_parses_verses():
    session = _session({"verses": [
        {"id": "JHN.3.16", "reference": "John 3:16", "text": "For God so loved", "copyright": "PD"},
        {"reference": "no id"},
        "garbage",
    ]})
    repo = HttpVerseRepository("http://localhost:5055/api/", session=session)

    verses = repo.fetch_verse_batch(DEFAULT_EDITION_ID)

    assert [v.id for v in verses] == ["JHN.3.16"]
    url = session.get.call_args[0][0]
    assert url == f"http://localhost:5055/api/verses/{DEFAULT_EDITION_ID}"


def test_http_repository_parses_editions():
    session = _session({"editions": [{
        "id": KJV_ID,
        "name": "King James (Authorised) Version",
        "abbreviation": "engKJV",
        "language": {"id": "eng", "name": "English", "nameLocal": "English", "script": "Latin"},
    }]})
    repo = HttpVerseRepository("http://localhost:5055/api", session=session)

    editions = repo.list_editions()

    assert editions[0].id == KJV_ID
    assert editions[0].language.direction == "ltr"


def test_http_repository_wraps_transport_errors():
    repo = HttpVerseRepository(
        "http://localhost:5055/api",
        session=_session(get_error=requests.ConnectionError("refused")),
    )
    with pytest.raises(RepositoryError):
        repo.fetch_verse_batch(KJV_ID)


def test_http_repository_wraps_status_errors():
    repo = HttpVerseRepository(
        "http://localhost:5055/api",
        session=_session({}, status_error=requests.HTTPError("500")),
    )
    with pytest.raises(RepositoryError):
        repo.list_editions()


def test_http_repository_rejects_unexpected_shape():
    repo = HttpVerseRepository("http://localhost:5055/api", session=_session({"verses": "nope"}))
    with pytest.raises(RepositoryError):
        repo.fetch_verse_batch(KJV_ID)

    repo = HttpVerseRepository("http://localhost:5055/api", session=_session(["not", "a", "dict"]))
    with pytest.raises(RepositoryError):
        repo.fetch_verse_batch(KJV_ID)
