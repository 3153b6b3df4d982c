"""
Admin sign-in and sign-out.

Handles:
- Email/password login through Supabase Auth
- Redirect back to the page that required auth (relative paths only)
- Logout
"""

from __future__ import annotations
import re
from flask import Blueprint, render_template, request, redirect, url_for, flash, current_app, session
from app.services import supabase_client
from app.utils.auth import set_session, clear_session, get_current_user, safe_redirect_target
from app.extensions import limiter


auth_bp = Blueprint("auth", __name__, url_prefix="/admin")

_EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


def _login_page(email: str = "", status: int = 200):
    return render_template(
        "admin/login.html",
        email=email,
        redirect_to=request.values.get("redirect", ""),
    ), status


@auth_bp.route("/login", methods=["GET", "POST"])
@limiter.limit(lambda: current_app.config["LOGIN_RATE_LIMIT"], methods=["POST"])
def login():
    """
    GET: Show the login form (or skip it if already signed in)
    POST: Sign in with email and password
    """
    target = safe_redirect_target(request.values.get("redirect")) or url_for("admin.index")

    if request.method == "GET":
        if get_current_user():
            return redirect(target)
        return _login_page()

    email = request.form.get("email", "").strip().lower()
    password = request.form.get("password", "")

    if not email or not password:
        flash("Please enter your email and password.", "error")
        return _login_page(email, 400)

    if len(email) > 320 or not _EMAIL_PATTERN.match(email):
        flash("Please enter a valid email address.", "error")
        return _login_page(email, 400)

    result = supabase_client.sign_in_with_password(email, password)

    if not result["success"]:
        current_app.logger.warning("Admin sign-in failed")
        flash(result.get("error", "Sign in failed."), "error")
        return _login_page(email, 401)

    set_session(result["user"], result["access_token"], result.get("refresh_token"))
    flash("Welcome back!", "success")
    return redirect(target)


@auth_bp.route("/logout")
def logout():
    """Log out current admin and clear session."""
    access_token = session.get("access_token")

    if access_token:
        supabase_client.sign_out(access_token)

    clear_session()
    flash("You've been logged out.", "info")

    return redirect(url_for("auth.login"))
