"""
Scripture services for versefeed.

This package provides:
- VerseService: editions, featured verse batches and legacy cursor lookups
- ScriptureApiClient: API.Bible access
- Edition, Language, Verse, DisplayVerse: typed records with a single parse step
- Fallback and placeholder verses used when the service is unavailable
"""

from .models import (
    BACKGROUND_STYLES,
    DisplayVerse,
    Edition,
    Language,
    MalformedResponse,
    Verse,
    find_edition,
    parse_editions,
    parse_verses,
    style_for,
    verses_to_dicts,
)
from .api_bible_client import (
    ScriptureApiClient,
    ScriptureApiError,
    ScriptureNetworkError,
)
from .verse_service import (
    VerseService,
    InvalidVerseIdentifier,
    parse_verse_id,
    random_passages,
)
from . import fallbacks

__all__ = [
    # Service (primary interface)
    "VerseService",
    "InvalidVerseIdentifier",
    "parse_verse_id",
    "random_passages",
    # Upstream client
    "ScriptureApiClient",
    "ScriptureApiError",
    "ScriptureNetworkError",
    # Records
    "BACKGROUND_STYLES",
    "DisplayVerse",
    "Edition",
    "Language",
    "MalformedResponse",
    "Verse",
    "find_edition",
    "parse_editions",
    "parse_verses",
    "style_for",
    "verses_to_dicts",
    # Fallbacks
    "fallbacks",
]
