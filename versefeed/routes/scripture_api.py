# routes/scripture_api.py
"""
API endpoints proxying the scripture service.

Provides:
- Edition listing and lookup
- Featured verse batches for the feed
- Legacy cursor mode (verses after/before a verse id)

Verse endpoints never fail the client: upstream trouble is answered with
literal fallback verses and HTTP 200. The only client error is a malformed
verse id in cursor mode.
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from versefeed.services.scripture import (
    InvalidVerseIdentifier,
    ScriptureApiError,
    VerseService,
    verses_to_dicts,
)
from versefeed.services.scripture.fallbacks import (
    cursor_fallbacks,
    route_empty_fallbacks,
    route_failure_fallbacks,
)
from versefeed.services.scripture.verse_service import DEFAULT_CURSOR_COUNT
from versefeed.utils.errors import invalid_field, upstream_error, server_error

logger = logging.getLogger(__name__)

scripture_bp = Blueprint("scripture_api", __name__, url_prefix="/api")

# Lazily initialized service instance
_service = None


def get_service() -> VerseService:
    """Get the app-configured VerseService, or create a shared one."""
    global _service
    configured = current_app.config.get("VERSE_SERVICE")
    if configured is not None:
        return configured
    if _service is None:
        _service = VerseService()
    return _service


# =============================================================================
# Editions
# =============================================================================

@scripture_bp.get("/editions")
def list_editions():
    """
    List English editions.

    Returns:
        {"editions": [...]}; an empty list when the service fails
    """
    try:
        editions = get_service().english_editions()
    except Exception as e:
        logger.error(f"Failed to get available Bibles: {e}")
        return jsonify({"editions": []})

    logger.info(f"Retrieved {len(editions)} Bibles")
    return jsonify({"editions": [e.to_dict() for e in editions]})


@scripture_bp.get("/editions/<edition_id>")
def get_edition(edition_id):
    """
    One edition's metadata.

    Returns:
        {"edition": {...}}, or the upstream error status
    """
    try:
        edition = get_service().edition(edition_id)
    except ScriptureApiError as e:
        logger.error(f"Failed to get Bible with ID: {edition_id}")
        return upstream_error(e.status, "Failed to fetch bible details")
    except Exception as e:
        logger.error(f"Failed to get Bible with ID: {edition_id}: {e}")
        return server_error("edition_lookup_failed", "Failed to fetch bible details")

    logger.info(f"Retrieved Bible: {edition.name}")
    return jsonify({"edition": edition.to_dict()})


# =============================================================================
# Verses
# =============================================================================

@scripture_bp.get("/verses/<edition_id>")
def get_verses(edition_id):
    """
    A fresh batch of candidate verses for the feed.

    Returns:
        {"verses": [...]}, always HTTP 200
    """
    try:
        verses = get_service().featured_verses(edition_id)
    except Exception as e:
        logger.error(f"Failed to get verses for Bible {edition_id}: {e}")
        return jsonify({"verses": verses_to_dicts(route_failure_fallbacks())})

    if not verses:
        return jsonify({"verses": verses_to_dicts(route_empty_fallbacks())})

    logger.info(f"Retrieved {len(verses)} featured verses for Bible {edition_id}")
    return jsonify({"verses": verses_to_dicts(verses)})


def _cursor_count() -> int:
    count = request.args.get("count", DEFAULT_CURSOR_COUNT, type=int)
    if not count or count < 1:
        return DEFAULT_CURSOR_COUNT
    return count


def _cursor_lookup(direction: str, edition_id: str, verse_id: str):
    service = get_service()
    lookup = service.verses_after if direction == "after" else service.verses_before
    try:
        verses = lookup(edition_id, verse_id, _cursor_count())
    except InvalidVerseIdentifier as e:
        return invalid_field("verse_id", e.message)
    except Exception as e:
        logger.error(
            f"Failed to get verses {direction} {verse_id} for Bible {edition_id}: {e}"
        )
        return jsonify({"verses": verses_to_dicts(cursor_fallbacks(direction))})

    logger.info(f"Retrieved {len(verses)} verses {direction} {verse_id}")
    return jsonify({"verses": verses_to_dicts(verses)})


@scripture_bp.get("/verses/<edition_id>/after/<verse_id>")
def get_verses_after(edition_id, verse_id):
    """
    Verses following verse_id in reading order.

    Query params:
        count: Number of verses (optional, default 5)
    """
    return _cursor_lookup("after", edition_id, verse_id)


@scripture_bp.get("/verses/<edition_id>/before/<verse_id>")
def get_verses_before(edition_id, verse_id):
    """
    Verses preceding verse_id in reading order.

    Query params:
        count: Number of verses (optional, default 5)
    """
    return _cursor_lookup("before", edition_id, verse_id)
