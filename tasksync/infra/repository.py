from __future__ import annotations

import json
from typing import Any, Optional

from sqlalchemy.orm import sessionmaker

from tasksync.domain.entities import format_datetime, utcnow

from .models import DocumentModel


class DocumentRepository:
    """Whole-document reads and upserts against the ``kv_store`` table."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def get_document(self, key: str) -> Optional[dict[str, Any]]:
        with self._session_factory() as session:
            entry = session.get(DocumentModel, key)
            if not entry:
                return None
            value = json.loads(entry.value)
        return value if isinstance(value, dict) else None

    def save_document(self, key: str, value: dict[str, Any]) -> str:
        now = utcnow()
        last_updated = format_datetime(now)
        payload = json.dumps({**value, "lastUpdated": last_updated}, ensure_ascii=False)
        with self._session_factory() as session:
            entry = session.get(DocumentModel, key)
            if entry is None:
                session.add(DocumentModel(key=key, value=payload, updated_at=now))
            else:
                entry.value = payload
                entry.updated_at = now
            session.commit()
        return last_updated
