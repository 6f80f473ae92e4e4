# services/scripture/fallbacks.py
"""
Literal verses shown when the scripture service is unavailable.

The feed must never be blank: every failure path ends in one of these
lists instead of an error state.
"""

import uuid
from typing import List

from .models import Verse

FALLBACK_COPYRIGHT = "Fallback verse"

JOHN_3_16 = (
    "John 3:16",
    "For God so loved the world, that he gave his only Son, that whoever "
    "believes in him should not perish but have eternal life.",
)
PSALM_23_1 = ("Psalm 23:1", "The LORD is my shepherd; I shall not want.")
PROVERBS_3_5 = (
    "Proverbs 3:5-6",
    "Trust in the LORD with all your heart, and do not lean on your own "
    "understanding. In all your ways acknowledge him, and he will make "
    "straight your paths.",
)
ROMANS_8_28 = (
    "Romans 8:28",
    "And we know that for those who love God all things work together for "
    "good, for those who are called according to his purpose.",
)
ISAIAH_40_31 = (
    "Isaiah 40:31",
    "But they who wait for the LORD shall renew their strength; they shall "
    "mount up with wings like eagles; they shall run and not be weary; they "
    "shall walk and not faint.",
)
ISAIAH_41_10 = (
    "Isaiah 41:10",
    "Fear not, for I am with you; be not dismayed, for I am your God; I will "
    "strengthen you, I will help you, I will uphold you with my righteous "
    "right hand.",
)
PSALM_119_105 = (
    "Psalm 119:105",
    "Your word is a lamp to my feet and a light to my path.",
)
PHILIPPIANS_3_14 = (
    "Philippians 3:14",
    "I press on toward the goal for the prize of the upward call of God in "
    "Christ Jesus.",
)
PHILIPPIANS_4_13 = (
    "Philippians 4:13",
    "I can do all things through him who strengthens me.",
)

# Every fallback id starts with this, whatever the failure path
FALLBACK_ID_PREFIX = "fallback-"

# Substituted for an empty-text candidate during forward/backward loads
PLACEHOLDER_REFERENCE = "Bible Verse"
PLACEHOLDER_TEXT = "The word of God is living and active."


def fallback_verse(reference: str, text: str, prefix: str = "fallback") -> Verse:
    """Build one fallback verse with a unique id."""
    return Verse(
        id=f"{prefix}-{uuid.uuid4().hex[:12]}",
        reference=reference,
        text=text,
        copyright=FALLBACK_COPYRIGHT,
    )


def is_fallback_id(verse_id: str) -> bool:
    return verse_id.startswith(FALLBACK_ID_PREFIX)


def fallback_verses(*passages, prefix: str = "fallback") -> List[Verse]:
    return [fallback_verse(ref, text, prefix) for ref, text in passages]


def placeholder_for(verse: Verse) -> Verse:
    """Keep the candidate's id so dedupe and position styling still apply."""
    return Verse(
        id=verse.id,
        reference=verse.reference or PLACEHOLDER_REFERENCE,
        text=PLACEHOLDER_TEXT,
        copyright=verse.copyright,
    )


# Named sets used by the different failure paths

def empty_batch_fallbacks() -> List[Verse]:
    """Service answered but had nothing usable."""
    return fallback_verses(JOHN_3_16)


def service_failure_fallbacks() -> List[Verse]:
    """Unexpected failure while assembling a batch."""
    return fallback_verses(JOHN_3_16, PSALM_23_1, PROVERBS_3_5)


def route_failure_fallbacks() -> List[Verse]:
    """Returned with HTTP 200 when the verses route itself fails."""
    return fallback_verses(ROMANS_8_28, ISAIAH_41_10, prefix="fallback-error")


def route_empty_fallbacks() -> List[Verse]:
    return fallback_verses(PSALM_119_105)


def cursor_fallbacks(direction: str) -> List[Verse]:
    """Legacy after/before routes."""
    passage = PHILIPPIANS_4_13 if direction == "after" else PHILIPPIANS_3_14
    return fallback_verses(passage, prefix=f"fallback-{direction}-error")


def feed_fallbacks() -> List[Verse]:
    """Client-side reload could not produce a single verse."""
    return fallback_verses(ISAIAH_40_31, PSALM_23_1, ROMANS_8_28)
