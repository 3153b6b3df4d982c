"""
JSON endpoints used by the page script to drive a mounted view.

Endpoints (all under /api/v1/views/<view_id>):
- POST   /more       sentinel became visible; returns the next page
- POST   /selection  open a loaded devotion in the reading modal
- DELETE /selection  close the modal
- POST   /unmount    page is going away; drop the view's state

A view is only reachable from the browser session that mounted it.
Admin views additionally require a signed-in admin.
"""

from flask import Blueprint, request, jsonify, render_template, current_app

from ..extensions import limiter, viewer_or_remote_address
from ..services.feeds import get_registry
from ..utils.auth import get_viewer_id, is_authenticated
from ..utils.errors import StoreError, NotFoundError, sanitize_error


api_bp = Blueprint("api", __name__)


def _get_feed(view_id: str):
    feed = get_registry().get(view_id, get_viewer_id())
    if feed is not None and feed.kind == "admin" and not is_authenticated():
        return None
    return feed


def _view_not_found():
    return jsonify({"success": False, "error": "This page has expired. Please reload."}), 404


@api_bp.route("/views/<view_id>/more", methods=["POST"])
@limiter.limit(lambda: current_app.config["SCROLL_RATE_LIMIT"], key_func=viewer_or_remote_address)
def load_more(view_id):
    """
    Sentinel-visible event.

    Returns:
        {
            "success": true,
            "items": [...devotions appended to the list...],
            "html": "<rendered cards>",
            "ignored": true if a fetch was already running or the list is exhausted,
            "state": "idle" | "fetching" | "exhausted",
            "exhausted": bool
        }
    """
    feed = _get_feed(view_id)
    if feed is None:
        return _view_not_found()

    try:
        page = feed.more()
    except StoreError as e:
        sanitized_msg = sanitize_error(e, "database", "Loading more devotions failed")
        return jsonify({"success": False, "error": sanitized_msg, **feed.snapshot()}), 503

    items = page or []
    html = render_template(
        "partials/devotion_cards.html",
        devotions=items,
        admin=feed.kind == "admin",
        view_id=feed.view_id,
    ) if items else ""

    return jsonify({
        "success": True,
        "items": [d.to_dict() for d in items],
        "html": html,
        "ignored": page is None,
        **feed.snapshot(),
    })


@api_bp.route("/views/<view_id>/selection", methods=["POST"])
def open_devotion(view_id):
    """
    Open a devotion in the reading modal.

    Request body (JSON):
        {"id": "<devotion id>"}
    """
    feed = _get_feed(view_id)
    if feed is None:
        return _view_not_found()

    data = request.get_json(silent=True) or {}
    devotion_id = str(data.get("id") or "").strip()
    if not devotion_id:
        return jsonify({"success": False, "error": "Missing devotion id"}), 400

    try:
        devotion = feed.open(devotion_id)
    except NotFoundError as e:
        return jsonify({"success": False, "error": sanitize_error(e, context="Open devotion")}), 404

    return jsonify({"success": True, "devotion": devotion.to_dict(), **feed.snapshot()})


@api_bp.route("/views/<view_id>/selection", methods=["DELETE"])
def close_devotion(view_id):
    feed = _get_feed(view_id)
    if feed is None:
        return _view_not_found()

    feed.close()
    return jsonify({"success": True, **feed.snapshot()})


@api_bp.route("/views/<view_id>/unmount", methods=["POST"])
@limiter.exempt
def unmount(view_id):
    """Sent with navigator.sendBeacon on pagehide. Always 204; unknown views are ignored."""
    get_registry().unmount(view_id, get_viewer_id())
    return "", 204
