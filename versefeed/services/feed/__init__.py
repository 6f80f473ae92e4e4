"""
Client-side verse feed.

This package provides:
- FeedState: buffer, cursor, likes and edition for the scrolling feed
- VerseRepository / HttpVerseRepository: where batches come from
- RetryPolicy / RetryingVerseRepository: bounded retry for the default edition
- PersistentStore / JsonFileStore / MemoryStore: session-surviving key-value storage
"""

from .repository import (
    HttpVerseRepository,
    RepositoryError,
    RetryingVerseRepository,
    RetryPolicy,
    VerseRepository,
)
from .store import (
    LIKED_VERSES_KEY,
    SELECTED_EDITION_KEY,
    VERSE_SNAPSHOTS_KEY,
    JsonFileStore,
    MemoryStore,
    PersistentStore,
)
from .state import (
    EmptyTextPolicy,
    FeedConfig,
    FeedState,
    FeedStatus,
    FeedView,
    choose_edition,
    sort_editions,
)

__all__ = [
    # State (primary interface)
    "FeedState",
    "FeedConfig",
    "FeedStatus",
    "FeedView",
    "EmptyTextPolicy",
    "choose_edition",
    "sort_editions",
    # Repository
    "VerseRepository",
    "HttpVerseRepository",
    "RepositoryError",
    "RetryPolicy",
    "RetryingVerseRepository",
    # Storage
    "PersistentStore",
    "JsonFileStore",
    "MemoryStore",
    "LIKED_VERSES_KEY",
    "SELECTED_EDITION_KEY",
    "VERSE_SNAPSHOTS_KEY",
    # Wiring
    "build_feed",
]


def build_feed(api_url: str = None, data_dir: str = None) -> FeedState:
    """FeedState wired to the HTTP API with the configured retry policy."""
    repository = RetryingVerseRepository(
        HttpVerseRepository(api_url),
        RetryPolicy.from_config(),
    )
    return FeedState(repository, JsonFileStore(data_dir))
