from __future__ import annotations

from enum import StrEnum


class TaskStatus(StrEnum):
    BACKLOG = "backlog"
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ProjectStatus(StrEnum):
    LIVE = "live"
    BUILDING = "building"
    PLANNED = "planned"
    OFFLINE = "offline"


class SyncStatus(StrEnum):
    IDLE = "idle"
    SYNCING = "syncing"
    SAVED = "saved"
    ERROR = "error"


class DocumentSource(StrEnum):
    REMOTE = "remote"
    SUPABASE = "supabase"
    EMPTY = "empty"
    NO_DB = "no-db"
    ERROR = "error"

    @property
    def authoritative(self) -> bool:
        return self in (DocumentSource.REMOTE, DocumentSource.SUPABASE)
