"""
Admin dashboard for managing devotions.

The dashboard page mounts an admin feed and every form on it posts back
with that feed's view_id, so create/edit/delete are projected into the
same list cache instead of reloading everything:
- create: insert, then reload the list (new record appears first)
- edit:   update, then patch the matching entry in place
- delete: delete, then drop the entry (and close it if it was open)

Form input is kept on validation or store errors so the admin can fix
and resubmit.
"""

from __future__ import annotations
from typing import Any, Dict, Optional
from flask import Blueprint, render_template, request, redirect, url_for, flash, current_app
from app.services import supabase_client
from app.services.feeds import DevotionFeed, get_registry
from app.utils.auth import require_auth, get_viewer_id
from app.utils.errors import StoreError, NotFoundError, RefreshError, ValidationError, sanitize_error
from app.utils.validation import validate_devotion_form

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")

FORM_FIELDS = ("title", "verse", "content", "date")


def _mount_feed() -> Optional[DevotionFeed]:
    store = supabase_client.get_store(admin=True)
    if store is None:
        return None

    feed = get_registry().mount(
        "admin", store, current_app.config["DEVOTIONS_PAGE_SIZE"], get_viewer_id()
    )
    try:
        feed.load_initial()
    except StoreError as e:
        flash(sanitize_error(e, context="Admin devotion load failed"), "error")
    return feed


def _feed_for(view_id: Optional[str]) -> Optional[DevotionFeed]:
    """The dashboard's feed, or a freshly mounted one if it expired."""
    if view_id:
        feed = get_registry().get(view_id, get_viewer_id(), kind="admin")
        if feed is not None:
            return feed
    return _mount_feed()


def _render_dashboard(feed: Optional[DevotionFeed], form: Optional[Dict[str, Any]] = None,
                      errors: Optional[Dict[str, str]] = None, editing: Optional[str] = None,
                      status: int = 200):
    return render_template(
        "admin/dashboard.html",
        feed=feed,
        devotions=feed.cache.items if feed else (),
        form=form or {},
        errors=errors or {},
        editing=editing,
    ), status


def _submitted_form() -> Dict[str, str]:
    return {field: request.form.get(field, "") for field in FORM_FIELDS}


def _back_to(feed: DevotionFeed):
    return redirect(url_for("admin.index", view=feed.view_id))


@admin_bp.route("/")
@require_auth
def index():
    """Dashboard: devotion list plus the create (or edit) form."""
    feed = _feed_for(request.args.get("view"))
    if feed is None:
        flash("Devotions are unavailable right now. Please try again later.", "error")
        return _render_dashboard(None, status=503)

    form: Dict[str, Any] = {}
    editing = request.args.get("edit")
    if editing:
        devotion = feed.cache.get(editing)
        if devotion is None:
            flash("That devotion is not loaded. Scroll to it and try again.", "error")
            editing = None
        else:
            form = {
                "title": devotion.title,
                "verse": devotion.verse,
                "content": devotion.content,
                "date": devotion.date.isoformat() if devotion.date else "",
            }

    return _render_dashboard(feed, form=form, editing=editing)


@admin_bp.route("/devotions", methods=["POST"])
@require_auth
def create_devotion():
    feed = _feed_for(request.form.get("view_id"))
    if feed is None:
        flash("Devotions are unavailable right now. Please try again later.", "error")
        return _render_dashboard(None, form=_submitted_form(), status=503)

    form = _submitted_form()
    payload, errors = validate_devotion_form(form)
    if errors:
        flash("Please fix the errors below.", "error")
        return _render_dashboard(feed, form=form, errors=errors, status=400)

    try:
        devotion = feed.cache.create(payload)
    except RefreshError as e:
        # Saved; only the list reload failed. The sentinel reloads page 0 on the next scroll.
        sanitize_error(e, context="Reload after create")
        flash(f'Created "{e.record.title}", but the list could not be refreshed. Scroll to reload it.', "warning")
        return _back_to(feed)
    except ValidationError as e:
        flash(sanitize_error(e, context="Create devotion"), "error")
        return _render_dashboard(feed, form=form, errors=e.fields, status=400)
    except StoreError as e:
        flash(sanitize_error(e, context="Create devotion"), "error")
        return _render_dashboard(feed, form=form, status=503)

    flash(f'Created "{devotion.title}".', "success")
    return _back_to(feed)


@admin_bp.route("/devotions/<devotion_id>/edit", methods=["POST"])
@require_auth
def edit_devotion(devotion_id):
    feed = _feed_for(request.form.get("view_id"))
    if feed is None:
        flash("Devotions are unavailable right now. Please try again later.", "error")
        return _render_dashboard(None, form=_submitted_form(), editing=devotion_id, status=503)

    form = _submitted_form()
    payload, errors = validate_devotion_form(form)
    if errors:
        flash("Please fix the errors below.", "error")
        return _render_dashboard(feed, form=form, errors=errors, editing=devotion_id, status=400)

    try:
        feed.cache.update(devotion_id, payload)
    except NotFoundError as e:
        flash(sanitize_error(e, context="Update devotion"), "error")
        return _back_to(feed)
    except ValidationError as e:
        flash(sanitize_error(e, context="Update devotion"), "error")
        return _render_dashboard(feed, form=form, errors=e.fields, editing=devotion_id, status=400)
    except StoreError as e:
        flash(sanitize_error(e, context="Update devotion"), "error")
        return _render_dashboard(feed, form=form, editing=devotion_id, status=503)

    flash("Devotion updated.", "success")
    return _back_to(feed)


@admin_bp.route("/devotions/<devotion_id>/delete", methods=["POST"])
@require_auth
def delete_devotion(devotion_id):
    feed = _feed_for(request.form.get("view_id"))
    if feed is None:
        flash("Devotions are unavailable right now. Please try again later.", "error")
        return redirect(url_for("admin.index"))

    try:
        feed.cache.delete(devotion_id)
    except StoreError as e:
        flash(sanitize_error(e, context="Delete devotion"), "error")
    else:
        flash("Devotion deleted.", "success")

    return _back_to(feed)
