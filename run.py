"""
Local development entry point.

Run with APP_CONFIG=app.config.DevConfig (and CONTENT_STORE=memory to work
without Supabase credentials).
"""

from app import create_app

app = create_app()

if __name__ == "__main__":
    # Dev server only; production uses wsgi.py behind gunicorn
    app.run(debug=True)
