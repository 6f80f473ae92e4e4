from flask import Blueprint, jsonify
from datetime import datetime, timezone

from versefeed import __version__
from versefeed.core import config

status_bp = Blueprint("status_api", __name__, url_prefix="/api")


@status_bp.get("/health")
def health():
    """
    Health check endpoint.

    The scripture service is not probed; a missing API key is reported
    since every verse request would fall back without one.
    """
    return jsonify(
        {
            "status": "ok",
            "version": __version__,
            "time_utc": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "components": {
                "scripture_api": {
                    "ok": bool(config.BIBLE_API_KEY),
                    "detail": "configured" if config.BIBLE_API_KEY else "missing api key",
                },
            },
        }
    )
