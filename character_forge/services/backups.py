"""Named backups of the editor's character document.

Backups behave like a small key-value store: the key is the backup name with
whitespace collapsed to underscores and lowercased, so ``"My Hero"`` and
``"my  hero"`` address the same snapshot. Saving under an existing key
replaces the snapshot. Callers commit the session.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import List, Optional

from flask import current_app

from ..extensions import db
from ..models import CharacterBackup
from .character_schema import normalize_character
from .errors import BackupNotFoundError

_WHITESPACE = re.compile(r"\s+")


def default_backup_name() -> str:
    return current_app.config.get("DEFAULT_BACKUP_NAME", "Autosave")


def backup_key(name: Optional[str]) -> str:
    cleaned = (name or "").strip() or default_backup_name()
    return _WHITESPACE.sub("_", cleaned).lower()


def save_backup(data: object, name: Optional[str] = None) -> CharacterBackup:
    """Store ``data`` as a normalised character snapshot under ``name``."""

    display_name = (name or "").strip() or default_backup_name()
    key = backup_key(display_name)
    snapshot = normalize_character(data).to_dict()

    backup = CharacterBackup.query.filter_by(key=key).first()
    if backup is None:
        backup = CharacterBackup(key=key, name=display_name, data=snapshot)
        db.session.add(backup)
    else:
        backup.name = display_name
        backup.data = snapshot
        backup.updated_at = datetime.utcnow()

    db.session.flush()
    current_app.logger.info("Backup saved: %s", display_name)
    return backup


def load_backup(name: Optional[str] = None) -> CharacterBackup:
    backup = CharacterBackup.query.filter_by(key=backup_key(name)).first()
    if backup is None:
        raise BackupNotFoundError(f"No backup named '{(name or '').strip() or default_backup_name()}'")
    return backup


def list_backups() -> List[CharacterBackup]:
    """Return every backup, newest first."""

    return CharacterBackup.query.order_by(
        CharacterBackup.updated_at.desc(),
        CharacterBackup.id.desc(),
    ).all()


def delete_backup(name: str) -> None:
    backup = load_backup(name)
    db.session.delete(backup)
    db.session.flush()


def rename_backup(old_name: str, new_name: str) -> CharacterBackup:
    """Move the backup ``old_name`` to ``new_name``, replacing any backup there."""

    backup = load_backup(old_name)
    cleaned = (new_name or "").strip()
    if not cleaned or cleaned == backup.name:
        return backup

    new_key = backup_key(cleaned)
    if new_key != backup.key:
        existing = CharacterBackup.query.filter_by(key=new_key).first()
        if existing is not None:
            db.session.delete(existing)
            db.session.flush()

    backup.key = new_key
    backup.name = cleaned
    db.session.flush()
    return backup


__all__ = [
    "backup_key",
    "delete_backup",
    "list_backups",
    "load_backup",
    "rename_backup",
    "save_backup",
]
