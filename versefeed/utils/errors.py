# utils/errors.py
"""
JSON error bodies for the versefeed API.

Every error is {"error": "<code>"} plus an optional "detail" string. Codes
are snake_case so clients can branch on them; details are for humans.

Only the edition lookup and a malformed cursor id produce errors. Verse
routes answer failures with fallback verses instead.
"""

from typing import Optional

from flask import jsonify


def error_response(code: str, status: int = 400, detail: Optional[str] = None):
    """
    Build an error body.

    Args:
        code: snake_case error code
        status: HTTP status to answer with
        detail: Optional human-readable message

    Returns:
        (response, status) tuple for a Flask view
    """
    body = {"error": code}
    if detail:
        body["detail"] = detail
    return jsonify(body), status


def not_found(resource: str = "resource", detail: Optional[str] = None):
    return error_response("not_found", 404, detail or f"{resource} not found")


def invalid_field(field: str, detail: Optional[str] = None):
    """400 for a path or query value that does not parse, e.g. invalid_verse_id."""
    return error_response(f"invalid_{field}", 400, detail)


def upstream_error(status: int, detail: Optional[str] = None):
    """
    Pass a scripture service failure through with its own status.

    A 404 upstream means the edition does not exist, so it gets the
    regular not_found body. Anything outside 4xx/5xx is reported as 502.
    """
    if status == 404:
        return not_found("edition", detail)
    if not 400 <= status < 600:
        status = 502
    return error_response("upstream_error", status, detail)


def server_error(code: str = "internal_error", detail: Optional[str] = None):
    return error_response(code, 500, detail)
