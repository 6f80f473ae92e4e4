# services/feed/state.py
"""
FeedState: the client-side verse feed.

Owns the ordered verse buffer, the read cursor, the liked set and the
selected edition, and mediates every call to the VerseRepository and the
PersistentStore.

Lifecycle:
    UNINITIALIZED -> LOADING   (initialize / reload / select_edition)
    LOADING       -> READY     (always; failures end in fallback verses)

Invariants held after every operation:
- no two buffer entries share an id
- 0 <= cursor < max(1, len(buffer))
- background styles are a function of buffer position only

Each reload bumps a generation counter. Fetches remember the generation
they started under and their results are dropped if it has moved on, so
a slow response for an old edition never lands in the new buffer.

Usage:
    feed = FeedState(repository, JsonFileStore())
    feed.start()                    # editions, persisted edition, first batch
    view = feed.view()
    print(view.current_verse.text)
    feed.advance()                  # prefetches near the end in the background
    feed.toggle_like(view.current_verse.id)
"""

import logging
import random
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from versefeed.core import config
from versefeed.services.scripture.fallbacks import feed_fallbacks, is_fallback_id, placeholder_for
from versefeed.services.scripture.models import DisplayVerse, Edition, Verse, find_edition

from .repository import VerseRepository
from .store import (
    LIKED_VERSES_KEY,
    SELECTED_EDITION_KEY,
    VERSE_SNAPSHOTS_KEY,
    PersistentStore,
    load_json,
    save_json,
)

logger = logging.getLogger(__name__)


class FeedStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


class EmptyTextPolicy(str, Enum):
    DROP = "drop"
    PLACEHOLDER = "placeholder"


@dataclass
class FeedConfig:
    """
    Tunables for FeedState.

    Attributes:
        default_edition_id: Edition chosen when nothing is persisted; also
            sorted first in the edition list
        batch_size: Most verses added by one forward/backward load
        forward_threshold: Prefetch forward when the cursor is this close
            to the end
        backward_threshold: Prefetch backward when the cursor is at most
            this far from the start
        reload_empty_text: What reload does with empty-text candidates.
            Forward/backward loads always substitute a placeholder.
    """
    default_edition_id: Optional[str] = field(default_factory=lambda: config.DEFAULT_EDITION_ID)
    batch_size: int = 5
    forward_threshold: int = 3
    backward_threshold: int = 2
    reload_empty_text: EmptyTextPolicy = EmptyTextPolicy.DROP


@dataclass(frozen=True)
class FeedView:
    """What the presentation layer renders."""
    current_verse: Optional[DisplayVerse]
    can_go_back: bool
    can_go_forward: bool
    position: int
    total: int
    loading: bool


def sort_editions(editions: Iterable[Edition], default_edition_id: Optional[str] = None) -> List[Edition]:
    """Alphabetical by name (stable), with the default edition forced first."""
    ordered = sorted(editions, key=lambda e: e.name.casefold())
    return sorted(ordered, key=lambda e: e.id != default_edition_id)


def choose_edition(
    editions: List[Edition],
    preferred_edition_id: Optional[str],
    default_edition_id: Optional[str],
) -> Optional[Edition]:
    """Persisted edition, else the default edition, else the first one."""
    return (
        find_edition(editions, preferred_edition_id)
        or find_edition(editions, default_edition_id)
        or (editions[0] if editions else None)
    )


REPEAT_MARKER = "#repeat-"


def source_id(verse_id: str) -> str:
    """Upstream id of a buffer entry, without any repeat suffix."""
    return verse_id.split(REPEAT_MARKER, 1)[0]


def _spawn_daemon(fn: Callable[[], None]) -> None:
    threading.Thread(target=fn, daemon=True).start()


class FeedState:
    """Explicit state holder for the verse feed."""

    def __init__(
        self,
        repository: VerseRepository,
        store: PersistentStore,
        feed_config: Optional[FeedConfig] = None,
        background: Optional[Callable[[Callable[[], None]], None]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.repository = repository
        self.store = store
        self.config = feed_config or FeedConfig()
        self._background = background or _spawn_daemon
        self._rng = rng or random.Random()
        self._lock = threading.RLock()

        self._editions: List[Edition] = []
        self._edition: Optional[Edition] = None
        self._buffer: List[DisplayVerse] = []
        self._cursor = 0
        self._status = FeedStatus.UNINITIALIZED
        self._generation = 0
        self._in_flight = 0
        self._repeat_seq = 0

        self._likes: Dict[str, bool] = {}
        self._snapshots: List[dict] = []
        self._snapshot_ids = set()
        self._load_persisted()

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def status(self) -> FeedStatus:
        return self._status

    @property
    def loading(self) -> bool:
        with self._lock:
            return self._status == FeedStatus.LOADING or self._in_flight > 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def editions(self) -> List[Edition]:
        with self._lock:
            return list(self._editions)

    @property
    def edition(self) -> Optional[Edition]:
        return self._edition

    @property
    def buffer(self) -> List[DisplayVerse]:
        with self._lock:
            return list(self._buffer)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current_verse(self) -> Optional[DisplayVerse]:
        with self._lock:
            if not self._buffer:
                return None
            return self._buffer[self._cursor]

    @property
    def can_go_back(self) -> bool:
        with self._lock:
            return self._cursor > 0

    @property
    def can_go_forward(self) -> bool:
        with self._lock:
            return self._cursor < len(self._buffer) - 1

    @property
    def likes(self) -> Dict[str, bool]:
        with self._lock:
            return dict(self._likes)

    def is_liked(self, verse_id: str) -> bool:
        with self._lock:
            return bool(self._likes.get(source_id(verse_id)))

    def view(self) -> FeedView:
        with self._lock:
            return FeedView(
                current_verse=self._buffer[self._cursor] if self._buffer else None,
                can_go_back=self._cursor > 0,
                can_go_forward=self._cursor < len(self._buffer) - 1,
                position=self._cursor + 1 if self._buffer else 0,
                total=len(self._buffer),
                loading=self._status == FeedStatus.LOADING or self._in_flight > 0,
            )

    # -------------------------------------------------------------------------
    # Startup and edition selection
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Fetch the edition list, then initialize with the persisted edition."""
        preferred = self.store.get(SELECTED_EDITION_KEY)
        try:
            editions = self.repository.list_editions()
        except Exception as e:
            logger.error(f"Error fetching editions: {e}")
            editions = []
        self.initialize(editions, preferred)

    def initialize(self, editions: Iterable[Edition], preferred_edition_id: Optional[str] = None) -> None:
        """
        Pick the starting edition and load the first batch.

        Precedence: preferred (persisted) id, then the default edition,
        then the first edition alphabetically.
        """
        default_id = self.config.default_edition_id
        ordered = sort_editions(editions, default_id)
        chosen = choose_edition(ordered, preferred_edition_id, default_id)

        with self._lock:
            self._editions = ordered
            self._edition = chosen
            if chosen is not None:
                self.store.set(SELECTED_EDITION_KEY, chosen.id)

        if chosen is None:
            logger.warning("No editions available, showing fallback verses")
        else:
            logger.info(f"Starting feed with edition {chosen.id} ({chosen.name})")
        self.reload()

    def select_edition(self, edition_id: str) -> bool:
        """Switch edition and rebuild the buffer. Unknown ids are ignored."""
        with self._lock:
            edition = find_edition(self._editions, edition_id)
            if edition is None:
                logger.warning(f"Ignoring unknown edition {edition_id}")
                return False
            self._edition = edition
            self.store.set(SELECTED_EDITION_KEY, edition.id)

        self.reload()
        return True

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def reload(self) -> None:
        """
        Replace the buffer with a fresh batch for the current edition.

        Never leaves the buffer empty: a failed or unusable batch is
        replaced by the literal fallback verses.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            edition = self._edition
            self._buffer = []
            self._cursor = 0
            self._status = FeedStatus.LOADING

        verses: List[Verse] = []
        if edition is not None:
            try:
                batch = self.repository.fetch_verse_batch(edition.id)
                verses = self._ingest_reload(self._shuffled(batch))
            except Exception as e:
                logger.error(f"Error fetching verses for {edition.id}: {e}")

        if not verses:
            logger.warning("No usable verses, using fallback verses")
            verses = feed_fallbacks()

        with self._lock:
            if generation != self._generation:
                logger.debug(f"Discarding stale reload (generation {generation})")
                return
            self._set_buffer(self._unique(verses))
            self._cursor = 0
            self._status = FeedStatus.READY
            self._record_snapshots(self._buffer)

    def load_forward(self) -> int:
        """Append up to batch_size new verses. Returns how many were added."""
        return self._extend(backward=False)

    def load_backward(self) -> int:
        """Prepend up to batch_size new verses, keeping the current verse in view."""
        return self._extend(backward=True)

    def _extend(self, backward: bool) -> int:
        direction = "previous" if backward else "next"
        with self._lock:
            edition = self._edition
            if edition is None or not self._buffer:
                return 0
            if backward and self._cursor > self.config.backward_threshold:
                return 0
            generation = self._generation
            self._in_flight += 1

        try:
            batch = self.repository.fetch_verse_batch(edition.id)
        except Exception as e:
            logger.error(f"Error fetching {direction} verses: {e}")
            return 0
        finally:
            with self._lock:
                self._in_flight -= 1

        pool = self._shuffled(batch)

        with self._lock:
            if generation != self._generation:
                logger.debug(f"Discarding stale {direction} batch (generation {generation})")
                return 0

            existing = {v.id for v in self._buffer}
            chosen = self._unique(v for v in pool if v.id not in existing)[:self.config.batch_size]
            if not chosen and pool:
                # Candidate pool exhausted: repeat verses so the feed keeps growing
                chosen = [self._repeat_of(v) for v in pool[:self.config.batch_size]]
            chosen = [v if v.has_text else placeholder_for(v) for v in chosen]
            if not chosen:
                return 0

            if backward:
                self._set_buffer(chosen + list(self._buffer))
                self._cursor += len(chosen)
            else:
                self._set_buffer(list(self._buffer) + chosen)

            self._record_snapshots(chosen)
            logger.debug(f"Added {len(chosen)} {direction} verses, buffer size {len(self._buffer)}")
            return len(chosen)

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def advance(self) -> int:
        """Move to the next verse (no wraparound). Returns the cursor."""
        return self.move_to(self._cursor + 1)

    def retreat(self) -> int:
        """Move to the previous verse (no wraparound). Returns the cursor."""
        return self.move_to(self._cursor - 1)

    def move_to(self, index: int) -> int:
        """Move the cursor, clamped to the buffer, and prefetch near either edge."""
        with self._lock:
            if not self._buffer:
                return self._cursor
            self._cursor = max(0, min(index, len(self._buffer) - 1))
            cursor = self._cursor
            near_end = cursor >= len(self._buffer) - self.config.forward_threshold
            near_start = 0 < cursor <= self.config.backward_threshold

        if near_end:
            self._background(self.load_forward)
        if near_start:
            self._background(self.load_backward)
        return cursor

    # -------------------------------------------------------------------------
    # Likes
    # -------------------------------------------------------------------------

    def toggle_like(self, verse_id: str) -> bool:
        """
        Flip the like for a verse and persist. Returns the new state.

        Repeat copies share the like of the verse they repeat. Fallback
        verses are only snapshotted once liked, so they stay exportable.
        """
        key = source_id(verse_id)
        with self._lock:
            liked = not self._likes.get(key, False)
            if liked:
                self._likes[key] = True
                if is_fallback_id(key):
                    self._record_snapshots(
                        (v for v in self._buffer if source_id(v.id) == key), include_fallbacks=True
                    )
            else:
                self._likes.pop(key, None)
            save_json(self.store, LIKED_VERSES_KEY, self._likes)
        return liked

    def liked_verses(self) -> List[dict]:
        """Snapshots ({id, reference, text}) of liked verses, in like order."""
        with self._lock:
            by_id = {s["id"]: s for s in self._snapshots}
            return [
                dict(by_id[verse_id])
                for verse_id, liked in self._likes.items()
                if liked and verse_id in by_id
            ]

    def export_likes(self) -> str:
        """Liked verses as plain text: reference, text, blank line."""
        return "".join(
            f"{s['reference']}\n{s['text']}\n\n" for s in self.liked_verses()
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _load_persisted(self) -> None:
        likes = load_json(self.store, LIKED_VERSES_KEY, {})
        self._likes = {str(k): True for k, v in likes.items() if v}
        snapshots = load_json(self.store, VERSE_SNAPSHOTS_KEY, [])
        for item in snapshots:
            if isinstance(item, dict) and item.get("id") and item["id"] not in self._snapshot_ids:
                self._snapshots.append({
                    "id": str(item["id"]),
                    "reference": str(item.get("reference", "")),
                    "text": str(item.get("text", "")),
                })
                self._snapshot_ids.add(str(item["id"]))

    def _shuffled(self, batch: Iterable[Verse]) -> List[Verse]:
        pool = list(batch)
        self._rng.shuffle(pool)
        return pool

    def _ingest_reload(self, verses: List[Verse]) -> List[Verse]:
        if self.config.reload_empty_text == EmptyTextPolicy.PLACEHOLDER:
            return [v if v.has_text else placeholder_for(v) for v in verses]
        return [v for v in verses if v.has_text]

    @staticmethod
    def _unique(verses: Iterable[Verse]) -> List[Verse]:
        seen = set()
        unique = []
        for verse in verses:
            if verse.id not in seen:
                seen.add(verse.id)
                unique.append(verse)
        return unique

    def _repeat_of(self, verse: Verse) -> Verse:
        self._repeat_seq += 1
        return Verse(
            id=f"{source_id(verse.id)}{REPEAT_MARKER}{self._repeat_seq}",
            reference=verse.reference,
            text=verse.text,
            copyright=verse.copyright,
        )

    def _set_buffer(self, verses: List[Verse]) -> None:
        self._buffer = [DisplayVerse.at(v, i) for i, v in enumerate(verses)]

    def _record_snapshots(self, verses: Iterable[Verse], include_fallbacks: bool = False) -> None:
        added = False
        for verse in verses:
            key = source_id(verse.id)
            if key in self._snapshot_ids:
                continue
            if is_fallback_id(key) and not include_fallbacks:
                continue
            snapshot = verse.snapshot()
            snapshot["id"] = key
            self._snapshots.append(snapshot)
            self._snapshot_ids.add(key)
            added = True
        if added:
            save_json(self.store, VERSE_SNAPSHOTS_KEY, self._snapshots)
