"""
Application-wide extensions, created here and initialized in create_app()
to avoid circular imports. Currently provides Flask-Limiter.
"""

from flask import session
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address


def viewer_or_remote_address() -> str:
    """Rate-limit key: the browser's viewer id when it has one, else its IP."""
    viewer_id = session.get("viewer_id")
    return f"viewer:{viewer_id}" if viewer_id else get_remote_address()


limiter = Limiter(key_func=get_remote_address)
