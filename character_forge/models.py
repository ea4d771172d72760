from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from .extensions import db


class CharacterBackup(db.Model):
    """Named snapshot of the editor's character document."""

    __tablename__ = "character_backups"

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    data = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "timestamp": self.updated_at.isoformat() if self.updated_at else None,
            "data": self.data,
        }

    def __repr__(self) -> str:  # pragma: no cover - repr for debugging
        return f"<CharacterBackup {self.key}>"
