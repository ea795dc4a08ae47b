"""
Flask-Migrate / Alembic entry point.

Usage:
    flask db upgrade
    flask sync-warehouses --limit 50
    flask pending-count
"""

from masterdata import create_app

app = create_app()
