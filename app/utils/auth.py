"""
Authentication utilities and decorators for route protection.

Provides:
- @require_auth: Decorator to require a signed-in admin
- Session management helpers
- get_viewer_id(): anonymous per-browser id that owns mounted views
"""

from __future__ import annotations
import secrets
from functools import wraps
from typing import Optional, Dict, Any
from urllib.parse import urlparse
from flask import session, redirect, url_for, request, flash, g
from app.services import supabase_client


# ============================================================================
# Session Management
# ============================================================================

SESSION_USER_KEY = "user"
SESSION_ACCESS_TOKEN_KEY = "access_token"
SESSION_REFRESH_TOKEN_KEY = "refresh_token"
SESSION_VIEWER_KEY = "viewer_id"


def get_current_user() -> Optional[Dict[str, Any]]:
    """
    Get currently logged-in user from session.

    Returns:
        User dict with id, email, etc. or None if not logged in
    """
    # Check if user already loaded in request context
    if hasattr(g, 'user'):
        return g.user

    access_token = session.get(SESSION_ACCESS_TOKEN_KEY)
    refresh_token = session.get(SESSION_REFRESH_TOKEN_KEY)

    if not access_token:
        g.user = None
        return None

    # Verify token with Supabase (pass both tokens)
    user = supabase_client.current_identity(access_token, refresh_token)
    if not user:
        # Token invalid/expired, clear session
        clear_session()
        g.user = None
        return None

    g.user = user
    return user


def get_viewer_id() -> str:
    """Random id for this browser session; mounted views are bound to it."""
    viewer_id = session.get(SESSION_VIEWER_KEY)
    if not viewer_id:
        viewer_id = secrets.token_urlsafe(16)
        session[SESSION_VIEWER_KEY] = viewer_id
    return viewer_id


def set_session(user: Dict[str, Any], access_token: str, refresh_token: Optional[str] = None) -> None:
    """
    Store user session data.

    Security: Regenerates session ID to prevent session fixation attacks.
    """
    session.clear()
    session.modified = True

    session[SESSION_USER_KEY] = {
        "id": user.get("id"),
        "email": user.get("email"),
    }
    session[SESSION_ACCESS_TOKEN_KEY] = access_token
    if refresh_token:
        session[SESSION_REFRESH_TOKEN_KEY] = refresh_token
    session.permanent = True


def clear_session() -> None:
    """Clear user session data."""
    session.pop(SESSION_USER_KEY, None)
    session.pop(SESSION_ACCESS_TOKEN_KEY, None)
    session.pop(SESSION_REFRESH_TOKEN_KEY, None)


def is_authenticated() -> bool:
    """Check if user is currently authenticated."""
    return get_current_user() is not None


def safe_redirect_target(target: Optional[str]) -> Optional[str]:
    """Return target if it is a same-site relative path, else None."""
    if not target:
        return None
    parsed = urlparse(target)
    # Only allow relative URLs with no scheme or netloc (prevents //evil.com)
    if parsed.scheme == '' and parsed.netloc == '' and target.startswith("/") and not target.startswith("//"):
        return target
    return None


# ============================================================================
# Decorators
# ============================================================================

def require_auth(f):
    """
    Decorator to require authentication for a route.

    If user not logged in, redirects to the admin login page with a
    'redirect' parameter pointing back at the requested path.

    Usage:
        @admin_bp.route('/')
        @require_auth
        def dashboard():
            ...
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_authenticated():
            flash("Please sign in to access this page.", "info")
            return redirect(url_for("auth.login", redirect=request.full_path.rstrip("?")))

        return f(*args, **kwargs)

    return decorated_function


# ============================================================================
# Helper Functions for Templates
# ============================================================================

def inject_auth_context():
    """
    Context processor to inject auth data into all templates.

    Call this from the Flask app factory:
        app.context_processor(inject_auth_context)
    """
    user = get_current_user()
    return {
        "current_user": user,
        "is_authenticated": user is not None,
    }
