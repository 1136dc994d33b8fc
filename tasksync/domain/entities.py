from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any, Iterable, Optional

from .enums import Priority, ProjectStatus, TaskStatus

DOCUMENT_VERSION = 2
LEGACY_DOCUMENT_VERSION = 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Accept ISO timestamps, bare ISO dates and a trailing ``Z``; naive values are UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def _require_record(data: Any, kind: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise TypeError(f"{kind} record must be an object, got {type(data).__name__}")
    return data


def normalize_tags(tags: Iterable[str] | str | None) -> tuple[str, ...]:
    if tags is None:
        return ()
    if isinstance(tags, str):
        tags = tags.split(",")
    cleaned = (str(tag).strip() for tag in tags)
    return tuple(dict.fromkeys(tag for tag in cleaned if tag))


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: Priority = Priority.MEDIUM
    assignee: str | None = None
    due_date: Optional[date] = None
    tags: tuple[str, ...] = ()
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    project_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "assignee": self.assignee,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "tags": list(self.tags),
            "createdAt": format_datetime(self.created_at),
            "updatedAt": format_datetime(self.updated_at),
            "completedAt": format_datetime(self.completed_at),
            "projectId": self.project_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Build a task from its wire form.

        Older document shapes lack ``updatedAt``, ``completedAt`` and
        ``projectId``; missing timestamps are derived from ``createdAt`` so the
        completion invariant holds for every decoded task.
        """
        data = _require_record(data, "task")
        status = TaskStatus(data.get("status") or TaskStatus.TODO.value)
        created_at = parse_datetime(data.get("createdAt")) or utcnow()
        updated_at = parse_datetime(data.get("updatedAt")) or created_at
        completed_at = parse_datetime(data.get("completedAt"))
        if status == TaskStatus.DONE and completed_at is None:
            completed_at = updated_at
        if status != TaskStatus.DONE:
            completed_at = None
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            status=status,
            priority=Priority(data.get("priority") or Priority.MEDIUM.value),
            assignee=data.get("assignee") or None,
            due_date=parse_date(data.get("dueDate")),
            tags=normalize_tags(data.get("tags")),
            created_at=created_at,
            updated_at=updated_at,
            completed_at=completed_at,
            project_id=data.get("projectId") or None,
        )


@dataclass(frozen=True)
class DeletedTask:
    task: Task
    deleted_at: datetime

    @property
    def id(self) -> str:
        return self.task.id

    def to_dict(self) -> dict[str, Any]:
        data = self.task.to_dict()
        data["deletedAt"] = format_datetime(self.deleted_at)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeletedTask":
        data = _require_record(data, "deleted task")
        task = Task.from_dict(data)
        return cls(task=task, deleted_at=parse_datetime(data.get("deletedAt")) or task.updated_at)


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    description: str = ""
    url: str | None = None
    status: ProjectStatus = ProjectStatus.PLANNED
    category: str = ""
    tech_stack: str = ""
    owner: str | None = None
    design_score: int = 0
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "url": self.url,
            "status": self.status.value,
            "category": self.category,
            "techStack": self.tech_stack,
            "owner": self.owner,
            "designScore": self.design_score,
            "createdAt": format_datetime(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Project":
        data = _require_record(data, "project")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            url=data.get("url") or None,
            status=ProjectStatus(data.get("status") or ProjectStatus.PLANNED.value),
            category=str(data.get("category") or ""),
            tech_stack=str(data.get("techStack") or ""),
            owner=data.get("owner") or None,
            design_score=int(data.get("designScore") or 0),
            created_at=parse_datetime(data.get("createdAt")) or utcnow(),
        )


@dataclass(frozen=True)
class Document:
    """The single persisted unit: live tasks, projects and the trash."""

    tasks: tuple[Task, ...] = ()
    projects: tuple[Project, ...] = ()
    deleted_tasks: tuple[DeletedTask, ...] = ()
    version: int = DOCUMENT_VERSION
    last_updated: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.tasks and not self.projects

    def find_task(self, task_id: str) -> Optional[Task]:
        return next((task for task in self.tasks if task.id == task_id), None)

    def find_deleted(self, task_id: str) -> Optional[DeletedTask]:
        return next((entry for entry in self.deleted_tasks if entry.id == task_id), None)

    def find_project(self, project_id: str) -> Optional[Project]:
        return next((project for project in self.projects if project.id == project_id), None)

    def same_content(self, other: "Document") -> bool:
        return (
            self.tasks == other.tasks
            and self.projects == other.projects
            and self.deleted_tasks == other.deleted_tasks
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "tasks": [task.to_dict() for task in self.tasks],
            "projects": [project.to_dict() for project in self.projects],
            "deletedTasks": [entry.to_dict() for entry in self.deleted_tasks],
            "version": self.version,
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Document":
        """Decode any known document shape into the current version.

        Raises ``KeyError``/``ValueError``/``TypeError`` on malformed records.
        """
        data = _require_record(data, "document")
        return cls(
            tasks=tuple(Task.from_dict(item) for item in data.get("tasks") or []),
            projects=tuple(Project.from_dict(item) for item in data.get("projects") or []),
            deleted_tasks=tuple(
                DeletedTask.from_dict(item) for item in data.get("deletedTasks") or []
            ),
            version=DOCUMENT_VERSION,
            last_updated=data.get("lastUpdated"),
        )
