"""
WSGI / Flask CLI entry point.

Usage:
    flask --app wsgi run
    flask --app wsgi seed-demo
    flask --app wsgi db init
    flask --app wsgi db migrate -m "description"
    flask --app wsgi db upgrade
"""

from devicelab import create_app

app = create_app()
