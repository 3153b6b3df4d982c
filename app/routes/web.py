"""
Public routes.

Serves the reading view: mounts a read feed for this page, loads the first
page of devotions and renders it with the sentinel the page script watches.
"""

from flask import Blueprint, render_template, current_app

from ..extensions import limiter
from ..services import supabase_client
from ..services.feeds import get_registry
from ..utils.auth import get_viewer_id
from ..utils.errors import StoreError, sanitize_error

web_bp = Blueprint("web", __name__)


@web_bp.route("/healthz")
@limiter.exempt
def healthz():
    """Simple health endpoint to verify the server responds."""
    return "OK", 200


@web_bp.route("/", methods=["GET"])
@limiter.limit("120 per minute")
def index():
    """Reading view with the first page of devotions, newest first."""
    store = supabase_client.get_store()
    if store is None:
        return render_template(
            "read.html",
            feed=None,
            devotions=(),
            error="Devotions are unavailable right now. Please try again later.",
        ), 503

    feed = get_registry().mount(
        "read", store, current_app.config["DEVOTIONS_PAGE_SIZE"], get_viewer_id()
    )

    error = None
    try:
        feed.load_initial()
    except StoreError as e:
        # The trigger stays idle, so the sentinel retries page 0
        error = sanitize_error(e, context="Initial devotion load failed")

    return render_template("read.html", feed=feed, devotions=feed.cache.items, error=error)
