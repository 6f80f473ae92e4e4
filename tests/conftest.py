# tests/conftest.py
"""
Shared fixtures: stub repository, in-memory store and feed factory.

Background prefetches run synchronously unless a test passes its own
runner, so every assertion sees the finished state.
"""

import random

import pytest

from versefeed.services.feed import FeedConfig, FeedState, MemoryStore, VerseRepository
from versefeed.services.scripture import Edition, Language, ScriptureApiError, Verse

DEFAULT_EDITION_ID = "65eec8e0b60e656b-01"
KJV_ID = "de4e12af7f28f599-02"
ASV_ID = "06125adad2d5898a-01"

ENGLISH = Language(id="eng", name="English", name_local="English", script="Latin", direction="LTR")


def make_verse(n, text=None, book="GEN", chapter=1) -> Verse:
    return Verse(
        id=f"{book}.{chapter}.{n}",
        reference=f"{book} {chapter}:{n}",
        text=f"Verse {book} {chapter}:{n}" if text is None else text,
        copyright="Public Domain",
    )


def make_verses(start, stop, book="GEN"):
    return [make_verse(n, book=book) for n in range(start, stop)]


class StubRepository(VerseRepository):
    """
    Scripted repository.

    Each fetch_verse_batch call pops the next scripted result (a list of
    verses or an exception to raise). When the script runs out, results
    come from by_edition, then from default.
    """

    def __init__(self, batches=None, editions=None, by_edition=None, default=None):
        self.batches = list(batches or [])
        self.editions = editions if editions is not None else []
        self.by_edition = by_edition or {}
        self.default = default if default is not None else []
        self.calls = []
        self.on_fetch = None

    def list_editions(self):
        if isinstance(self.editions, Exception):
            raise self.editions
        return list(self.editions)

    def fetch_verse_batch(self, edition_id):
        self.calls.append(edition_id)
        if self.on_fetch is not None:
            self.on_fetch(edition_id)
        if self.batches:
            result = self.batches.pop(0)
        elif edition_id in self.by_edition:
            result = self.by_edition[edition_id]
        else:
            result = self.default
        if isinstance(result, Exception):
            raise result
        return list(result)


@pytest.fixture
def editions():
    return [
        Edition(id=KJV_ID, name="King James (Authorised) Version", abbreviation="engKJV", language=ENGLISH),
        Edition(id=ASV_ID, name="American Standard Version", abbreviation="ASV", language=ENGLISH),
        Edition(id=DEFAULT_EDITION_ID, name="Free Bible Version", abbreviation="FBV", language=ENGLISH),
    ]


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def make_feed(store):
    def _make(repository, background=None, store_override=None, **config):
        config.setdefault("default_edition_id", DEFAULT_EDITION_ID)
        return FeedState(
            repository,
            store_override if store_override is not None else store,
            FeedConfig(**config),
            background=background or (lambda fn: fn()),
            rng=random.Random(7),
        )
    return _make


def ids(feed):
    return [v.id for v in feed.buffer]


class FakeScriptureClient:
    """
    In-memory stand-in for ScriptureApiClient.

    chapters maps "BOOK.CH" to the number of verses in that chapter; next
    and previous links follow the insertion order of the mapping. Passages
    listed in failing raise a 404.
    """

    def __init__(self, bibles=None, chapters=None, failing=(), passage_error=None):
        self.bibles = bibles if bibles is not None else []
        self.chapters = dict(chapters or {})
        self.failing = set(failing)
        self.passage_error = passage_error
        self.passages = []

    def list_bibles(self):
        if isinstance(self.bibles, Exception):
            raise self.bibles
        return list(self.bibles)

    def get_bible(self, bible_id):
        for bible in self.list_bibles():
            if bible.get("id") == bible_id:
                return bible
        raise ScriptureApiError("bible not found", 404)

    def get_passage(self, bible_id, passage):
        self.passages.append(passage)
        if self.passage_error is not None:
            raise self.passage_error
        if passage in self.failing:
            raise ScriptureApiError("passage not found", 404)
        return {
            "id": passage,
            "reference": passage.replace(".", " ", 1).replace(".", ":"),
            "content": f"<p>Text of {passage}</p>",
            "copyright": "PUBLIC DOMAIN",
        }

    def get_chapter(self, bible_id, chapter_id):
        if chapter_id not in self.chapters:
            raise ScriptureApiError("chapter not found", 404)
        order = list(self.chapters)
        index = order.index(chapter_id)
        return {
            "id": chapter_id,
            "next": {"id": order[index + 1]} if index + 1 < len(order) else None,
            "previous": {"id": order[index - 1]} if index > 0 else None,
        }

    def get_chapter_verses(self, bible_id, chapter_id):
        return [
            {"id": f"{chapter_id}.{n}", "reference": chapter_id}
            for n in range(1, self.chapters[chapter_id] + 1)
        ]

    def get_verse(self, bible_id, verse_id):
        return {"id": verse_id, "reference": verse_id, "content": f"Text of {verse_id}"}
