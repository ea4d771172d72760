"""Database helper utilities for ensuring schema consistency."""
from __future__ import annotations

from sqlalchemy import inspect

from .extensions import db


def ensure_database_schema() -> None:
    """Create the backup table when the database does not have it yet.

    Runs on every application start, so existing tables are left untouched.
    """

    # Import locally to avoid circular import issues during application setup.
    from .models import CharacterBackup

    if CharacterBackup.__tablename__ not in inspect(db.engine).get_table_names():
        CharacterBackup.__table__.create(bind=db.engine)
