# services/scripture/verse_service.py
"""
Verse service: reshapes API.Bible data into editions and verse batches.

Provides:
- english_editions / edition: Bible metadata as Edition records
- featured_verses: a random batch of passages for the feed
- verses_after / verses_before: legacy cursor mode walking chapter links
"""

import logging
import random
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple

from .api_bible_client import ScriptureApiClient, ScriptureApiError
from .fallbacks import empty_batch_fallbacks, service_failure_fallbacks
from .models import Edition, MalformedResponse, Verse, parse_editions

logger = logging.getLogger(__name__)


class InvalidVerseIdentifier(ScriptureApiError):
    """Verse id is not of the form BOOK.CHAPTER.VERSE."""

    def __init__(self, verse_id: str):
        super().__init__(f"Invalid verse ID format: {verse_id!r}", 400)
        self.verse_id = verse_id


# Books available in most Bible translations
BIBLE_BOOKS = [
    # Old Testament
    "GEN", "EXO", "LEV", "NUM", "DEU", "JOS", "JDG", "RUT", "1SA", "2SA",
    "1KI", "2KI", "1CH", "2CH", "EZR", "NEH", "EST", "JOB", "PSA", "PRO",
    "ECC", "SNG", "ISA", "JER", "LAM", "EZK", "DAN", "HOS", "JOL", "AMO",
    "OBA", "JON", "MIC", "NAM", "HAB", "ZEP", "HAG", "ZEC", "MAL",
    # New Testament
    "MAT", "MRK", "LUK", "JHN", "ACT", "ROM", "1CO", "2CO", "GAL", "EPH",
    "PHP", "COL", "1TH", "2TH", "1TI", "2TI", "TIT", "PHM", "HEB", "JAS",
    "1PE", "2PE", "1JN", "2JN", "3JN", "JUD", "REV",
]

# Passages known to exist in every edition; at most half a batch
KNOWN_VALID_PASSAGES = [
    "JHN.3.16", "PSA.23.1", "GEN.1.1", "ROM.8.28", "PHP.4.13",
    "MAT.11.28", "JER.29.11", "ROM.12.2", "PRO.3.5", "ISA.40.31",
    "PSA.46.1", "GAL.5.22", "HEB.11.1", "2TI.3.16", "MAT.28.19",
    "1JN.4.19", "PHP.4.6", "JHN.14.6", "EPH.2.8", "ROM.5.8",
]

FEATURED_BATCH_SIZE = 15
DEFAULT_CURSOR_COUNT = 5


def random_passages(count: int = FEATURED_BATCH_SIZE, rng: random.Random = None) -> List[str]:
    """
    Pick passage ids for a featured batch.

    Half (rounded down) come from KNOWN_VALID_PASSAGES so at least some
    requests succeed; the rest are random BOOK.chapter.verse ids kept to
    low chapter/verse numbers that exist in nearly every book.
    """
    rng = rng or random
    known = list(KNOWN_VALID_PASSAGES)
    rng.shuffle(known)
    passages = known[:min(count // 2, len(known))]

    for _ in range(count - len(passages)):
        book = rng.choice(BIBLE_BOOKS)
        chapter = rng.randint(1, 10)
        verse = rng.randint(1, 20)
        passages.append(f"{book}.{chapter}.{verse}")

    rng.shuffle(passages)
    return passages


def parse_verse_id(verse_id: str) -> Tuple[str, int, int]:
    """
    Split "JHN.3.16" into ("JHN", 3, 16).

    Raises:
        InvalidVerseIdentifier: Fewer than three parts or non-numeric
            chapter/verse
    """
    parts = (verse_id or "").split(".")
    if len(parts) < 3 or not parts[0]:
        raise InvalidVerseIdentifier(verse_id)
    try:
        return parts[0], int(parts[1]), int(parts[2])
    except ValueError:
        raise InvalidVerseIdentifier(verse_id)


def _verse_number(stub) -> Optional[int]:
    try:
        return int(str(stub.get("id", "")).split(".")[2])
    except (AttributeError, IndexError, ValueError):
        return None


class VerseService:
    """
    Verse lookup on top of ScriptureApiClient.

    Usage:
        service = VerseService()

        editions = service.english_editions()
        batch = service.featured_verses(editions[0].id)
        more = service.verses_after(editions[0].id, batch[0].id, count=5)
    """

    def __init__(self, client: ScriptureApiClient = None, rng: random.Random = None, max_workers: int = 5):
        self.client = client or ScriptureApiClient()
        self.rng = rng or random.Random()
        self.max_workers = max_workers

    # -------------------------------------------------------------------------
    # Editions
    # -------------------------------------------------------------------------

    def english_editions(self) -> List[Edition]:
        """All English editions."""
        editions = parse_editions(self.client.list_bibles())
        english = [e for e in editions if e.language.is_english]
        logger.info(
            f"Filtered to {len(english)} English Bibles from {len(editions)} total Bibles"
        )
        return english

    def edition(self, edition_id: str) -> Edition:
        try:
            return Edition.from_api(self.client.get_bible(edition_id))
        except MalformedResponse as e:
            raise ScriptureApiError(str(e), 502)

    # -------------------------------------------------------------------------
    # Featured batch
    # -------------------------------------------------------------------------

    def _fetch_passage(self, edition_id: str, passage: str) -> Optional[Verse]:
        try:
            data = self.client.get_passage(edition_id, passage)
            if isinstance(data, dict):
                data = {"id": passage, "reference": passage, **{k: v for k, v in data.items() if v}}
            return Verse.from_api(data)
        except (ScriptureApiError, MalformedResponse):
            logger.warning(f"Failed to get passage {passage} for Bible {edition_id}")
            return None

    def featured_verses(self, edition_id: str) -> List[Verse]:
        """
        A batch of random verses for an edition.

        Never raises: individual passage failures are skipped, an empty
        result becomes one fallback verse, and anything unexpected becomes
        the three-verse fallback set.
        """
        try:
            passages = random_passages(FEATURED_BATCH_SIZE, self.rng)
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                fetched = list(pool.map(lambda p: self._fetch_passage(edition_id, p), passages))

            verses = [v for v in fetched if v is not None and v.has_text]
            if not verses:
                logger.warning(f"No valid verses found for Bible {edition_id}, using fallback")
                return empty_batch_fallbacks()
            return verses
        except Exception as e:
            logger.error(f"Failed to get random verses for Bible {edition_id}: {e}")
            return service_failure_fallbacks()

    # -------------------------------------------------------------------------
    # Legacy cursor mode
    # -------------------------------------------------------------------------

    def _fetch_verse(self, edition_id: str, verse_id: str) -> Optional[Verse]:
        try:
            return Verse.from_api(self.client.get_verse(edition_id, verse_id))
        except (ScriptureApiError, MalformedResponse):
            logger.warning(f"Failed to get verse {verse_id}")
            return None

    def verses_after(self, edition_id: str, verse_id: str, count: int = DEFAULT_CURSOR_COUNT) -> List[Verse]:
        """
        Up to `count` verses following `verse_id`, continuing into later
        chapters through the chapter "next" links.

        Raises:
            InvalidVerseIdentifier: verse_id is malformed
            ScriptureApiError: the starting chapter could not be loaded
        """
        book, chapter, verse_num = parse_verse_id(verse_id)
        chapter_id = f"{book}.{chapter}"
        chapter_data = self.client.get_chapter(edition_id, chapter_id)

        results: List[Verse] = []
        while len(results) < count and chapter_data:
            stubs = self.client.get_chapter_verses(edition_id, chapter_id)
            following = [
                s for s in stubs
                if (_verse_number(s) or 0) > verse_num
            ][:count - len(results)]

            for stub in following:
                verse = self._fetch_verse(edition_id, stub.get("id", ""))
                if verse is not None:
                    results.append(verse)
                if len(results) >= count:
                    break

            next_link = chapter_data.get("next") if isinstance(chapter_data, dict) else None
            if len(results) < count and isinstance(next_link, dict) and next_link.get("id"):
                verse_num = 0
                chapter_id = next_link["id"]
                try:
                    chapter_data = self.client.get_chapter(edition_id, chapter_id)
                except ScriptureApiError:
                    logger.warning(f"Failed to get next chapter {chapter_id}")
                    chapter_data = None
            else:
                break

        return results

    def verses_before(self, edition_id: str, verse_id: str, count: int = DEFAULT_CURSOR_COUNT) -> List[Verse]:
        """
        Up to `count` verses preceding `verse_id`, in reading order,
        continuing into earlier chapters through the "previous" links.
        """
        book, chapter, verse_num = parse_verse_id(verse_id)
        chapter_id = f"{book}.{chapter}"
        chapter_data = self.client.get_chapter(edition_id, chapter_id)

        results: List[Verse] = []
        while len(results) < count and chapter_data:
            stubs = self.client.get_chapter_verses(edition_id, chapter_id)
            preceding = [
                s for s in stubs
                if _verse_number(s) is not None
                and (verse_num is None or _verse_number(s) < verse_num)
            ]
            preceding = list(reversed(preceding))[:count - len(results)]

            for stub in preceding:
                verse = self._fetch_verse(edition_id, stub.get("id", ""))
                if verse is not None:
                    results.insert(0, verse)
                if len(results) >= count:
                    break

            previous_link = chapter_data.get("previous") if isinstance(chapter_data, dict) else None
            if len(results) < count and isinstance(previous_link, dict) and previous_link.get("id"):
                # Whole previous chapter is eligible
                verse_num = None
                chapter_id = previous_link["id"]
                try:
                    chapter_data = self.client.get_chapter(edition_id, chapter_id)
                except ScriptureApiError:
                    logger.warning(f"Failed to get previous chapter {chapter_id}")
                    chapter_data = None
            else:
                break

        return results
