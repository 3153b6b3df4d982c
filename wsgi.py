"""
WSGI entrypoint for production servers, e.g.:

    gunicorn --workers 1 --threads 8 wsgi:app

Mounted views live in process memory, so run a single worker process
(threads are fine) or pin sessions to a worker.
"""

from app import create_app

app = create_app()
