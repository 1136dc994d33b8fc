from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from tasksync.domain.entities import DeletedTask, Document, Project, Task

from .models import CacheEntryModel

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"
PROJECTS_KEY = "projects"
DELETED_TASKS_KEY = "deleted-tasks"
LAST_UPDATED_KEY = "last-updated"


class LocalCache:
    """Namespaced JSON key-value cache on the device.

    Reads fall back to the caller's default and writes are dropped on any
    storage or encoding failure. Without a session factory every call is a
    no-op, which is how a context with no device store behaves.
    """

    def __init__(self, session_factory: Optional[sessionmaker], prefix: str = "pm") -> None:
        self._session_factory = session_factory
        self._prefix = prefix

    @property
    def available(self) -> bool:
        return self._session_factory is not None

    def _key(self, name: str) -> str:
        return f"{self._prefix}-{name}"

    def load(self, name: str, default: Any = None) -> Any:
        if self._session_factory is None:
            return default
        try:
            with self._session_factory() as session:
                entry = session.get(CacheEntryModel, self._key(name))
                raw = entry.value if entry else None
        except SQLAlchemyError as exc:
            logger.warning("Cache read of %s failed: %s", self._key(name), exc)
            return default
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Cache entry %s is not valid JSON; using default", self._key(name))
            return default

    def save(self, name: str, value: Any) -> None:
        self.save_many({name: value})

    def save_many(self, values: dict[str, Any]) -> None:
        if self._session_factory is None:
            return
        try:
            encoded = {self._key(name): json.dumps(value, ensure_ascii=False) for name, value in values.items()}
        except (TypeError, ValueError) as exc:
            logger.warning("Cache write skipped, value not serializable: %s", exc)
            return
        try:
            with self._session_factory() as session:
                for key, payload in encoded.items():
                    entry = session.get(CacheEntryModel, key)
                    if entry is None:
                        session.add(CacheEntryModel(key=key, value=payload))
                    else:
                        entry.value = payload
                session.commit()
        except SQLAlchemyError as exc:
            logger.warning("Cache write failed: %s", exc)

    def _load_records(self, name: str, decode: Callable[[dict], Any]) -> tuple:
        raw = self.load(name, [])
        if not isinstance(raw, list):
            return ()
        try:
            return tuple(decode(item) for item in raw)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Cache entry %s is malformed; using default: %s", self._key(name), exc)
            return ()

    def load_document(self) -> Document:
        return Document(
            tasks=self._load_records(TASKS_KEY, Task.from_dict),
            projects=self._load_records(PROJECTS_KEY, Project.from_dict),
            deleted_tasks=self._load_records(DELETED_TASKS_KEY, DeletedTask.from_dict),
            last_updated=self.load(LAST_UPDATED_KEY, None),
        )

    def save_document(self, document: Document) -> None:
        payload = document.to_payload()
        values: dict[str, Any] = {
            TASKS_KEY: payload["tasks"],
            PROJECTS_KEY: payload["projects"],
            DELETED_TASKS_KEY: payload["deletedTasks"],
        }
        if document.last_updated is not None:
            values[LAST_UPDATED_KEY] = document.last_updated
        self.save_many(values)
