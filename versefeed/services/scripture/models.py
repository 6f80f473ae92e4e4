# services/scripture/models.py
"""
Typed records for editions and verses.

Every upstream or proxy payload passes through exactly one parse step
here (Edition.from_api / Verse.from_api). Parsing either yields a fully
populated record, with optional fields defaulted, or raises
MalformedResponse. Nothing downstream re-checks optionality.
"""

import logging
import re
from dataclasses import dataclass, asdict, field
from typing import Any, Iterable, List, Optional

logger = logging.getLogger(__name__)


class MalformedResponse(ValueError):
    """Payload parsed as JSON but does not have the expected shape."""
    pass


# Background gradients assigned by buffer position (position % len)
BACKGROUND_STYLES = (
    "from-blue-900 to-indigo-800",
    "from-green-900 to-teal-800",
    "from-purple-900 to-pink-800",
    "from-red-900 to-orange-800",
    "from-emerald-900 to-cyan-800",
    "from-amber-900 to-yellow-700",
    "from-violet-900 to-fuchsia-800",
    "from-blue-900 via-purple-800 to-pink-900",
    "from-green-900 via-emerald-800 to-teal-900",
    "from-rose-900 via-red-800 to-orange-900",
    "from-indigo-900 via-violet-800 to-purple-900",
    "from-cyan-900 via-sky-800 to-blue-900",
    "from-fuchsia-900 via-pink-800 to-rose-900",
    "from-yellow-900 via-amber-800 to-orange-900",
)

_TAG_RE = re.compile(r"</?[^>]+(>|$)")


def style_for(position: int) -> str:
    """Background style for a buffer position."""
    return BACKGROUND_STYLES[position % len(BACKGROUND_STYLES)]


def strip_markup(content: Any) -> str:
    """Strip HTML tags from passage content and trim whitespace."""
    if not isinstance(content, str):
        return ""
    return _TAG_RE.sub("", content).strip()


def _str(data: dict, key: str, default: str = "") -> str:
    value = data.get(key)
    if value is None:
        return default
    return str(value)


@dataclass(frozen=True)
class Language:
    id: str = ""
    name: str = ""
    name_local: str = ""
    script: str = ""
    direction: str = "ltr"

    @classmethod
    def from_api(cls, data: Any) -> "Language":
        if not isinstance(data, dict):
            return cls()
        return cls(
            id=_str(data, "id"),
            name=_str(data, "name"),
            name_local=_str(data, "nameLocal"),
            script=_str(data, "script"),
            direction=_str(data, "scriptDirection") or _str(data, "direction") or "ltr",
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "nameLocal": self.name_local,
            "script": self.script,
            "scriptDirection": self.direction,
        }

    @property
    def is_english(self) -> bool:
        return (
            self.id == "eng"
            or self.name == "English"
            or self.name_local == "English"
        )


@dataclass(frozen=True)
class Edition:
    """
    A translation/version of the Bible as published by the scripture service.

    Attributes:
        id: Upstream Bible id (e.g., "65eec8e0b60e656b-01")
        name: Display name
        abbreviation: Short name (e.g., "FBV")
        description: Free text from the publisher
        language: Language metadata
    """
    id: str
    name: str = ""
    abbreviation: str = ""
    description: str = ""
    language: Language = field(default_factory=Language)

    @classmethod
    def from_api(cls, data: Any) -> "Edition":
        if not isinstance(data, dict):
            raise MalformedResponse(f"Edition must be an object, got {type(data).__name__}")
        edition_id = _str(data, "id")
        if not edition_id:
            raise MalformedResponse("Edition is missing an id")
        return cls(
            id=edition_id,
            name=_str(data, "name"),
            abbreviation=_str(data, "abbreviation") or _str(data, "abbreviationLocal"),
            description=_str(data, "description"),
            language=Language.from_api(data.get("language")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "abbreviation": self.abbreviation,
            "description": self.description,
            "language": self.language.to_dict(),
        }


@dataclass(frozen=True)
class Verse:
    """
    One addressable unit of scripture.

    Attributes:
        id: Stable upstream identifier (e.g., "JHN.3.16")
        reference: Human-readable citation (e.g., "John 3:16")
        text: Plain text content
        copyright: Publisher notice; may be empty
    """
    id: str
    reference: str
    text: str
    copyright: str = ""

    @classmethod
    def from_api(cls, data: Any) -> "Verse":
        """
        Parse a verse record.

        Accepts both the proxy shape ({"text": ...}) and the raw upstream
        passage shape ({"content": ...}, possibly with markup).
        """
        if not isinstance(data, dict):
            raise MalformedResponse(f"Verse must be an object, got {type(data).__name__}")
        verse_id = _str(data, "id")
        if not verse_id:
            raise MalformedResponse("Verse is missing an id")
        if "text" in data:
            text = _str(data, "text").strip()
        else:
            text = strip_markup(data.get("content"))
        return cls(
            id=verse_id,
            reference=_str(data, "reference") or verse_id,
            text=text,
            copyright=_str(data, "copyright"),
        )

    @property
    def has_text(self) -> bool:
        return bool(self.text.strip())

    def to_dict(self) -> dict:
        return asdict(self)

    def snapshot(self) -> dict:
        """Record kept for the liked-verses view (no copyright)."""
        return {"id": self.id, "reference": self.reference, "text": self.text}


@dataclass(frozen=True)
class DisplayVerse(Verse):
    """Verse plus the background style of its buffer position."""
    background_style: str = ""

    @classmethod
    def at(cls, verse: Verse, position: int) -> "DisplayVerse":
        return cls(
            id=verse.id,
            reference=verse.reference,
            text=verse.text,
            copyright=verse.copyright,
            background_style=style_for(position),
        )


def parse_editions(items: Any) -> List[Edition]:
    """Parse a list of editions, skipping malformed entries."""
    if not isinstance(items, list):
        raise MalformedResponse("Expected a list of editions")
    editions = []
    for item in items:
        try:
            editions.append(Edition.from_api(item))
        except MalformedResponse as e:
            logger.warning(f"Skipping malformed edition: {e}")
    return editions


def parse_verses(items: Any) -> List[Verse]:
    """Parse a list of verses, skipping malformed entries."""
    if not isinstance(items, list):
        raise MalformedResponse("Expected a list of verses")
    verses = []
    for item in items:
        try:
            verses.append(Verse.from_api(item))
        except MalformedResponse as e:
            logger.warning(f"Skipping malformed verse: {e}")
    return verses


def verses_to_dicts(verses: Iterable[Verse]) -> List[dict]:
    return [v.to_dict() for v in verses]


def find_edition(editions: Iterable[Edition], edition_id: Optional[str]) -> Optional[Edition]:
    if not edition_id:
        return None
    for edition in editions:
        if edition.id == edition_id:
            return edition
    return None
