"""Pure state transitions over a :class:`Document`.

Every function returns a new document and never touches the collections of
the one it was given. Invalid input is refused by returning the input
document itself, so callers can detect a no-op with ``result is document``.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from tasksync.domain.entities import (
    DeletedTask,
    Document,
    Project,
    Task,
    normalize_tags,
    parse_date,
    utcnow,
)
from tasksync.domain.enums import Priority, ProjectStatus, TaskStatus
from tasksync.domain.seed import TEAM_MEMBERS

logger = logging.getLogger(__name__)

MAX_DELETED_TASKS = 20

_WIRE_ALIASES = {
    "dueDate": "due_date",
    "projectId": "project_id",
    "techStack": "tech_stack",
    "designScore": "design_score",
}


def new_id() -> str:
    return uuid4().hex


def _normalize_data(data: dict) -> dict:
    return {_WIRE_ALIASES.get(key, key): value for key, value in data.items()}


def _member(value: Any) -> str | None:
    if value in (None, ""):
        return None
    if value not in TEAM_MEMBERS:
        raise ValueError(f"unknown team member: {value!r}")
    return str(value)


def _required_text(value: Any, label: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValueError(f"{label} is required")
    return text


def _coerce_task_fields(data: dict) -> dict:
    data = _normalize_data(data)
    fields: dict[str, Any] = {}
    if "title" in data:
        fields["title"] = _required_text(data["title"], "title")
    if "description" in data:
        fields["description"] = str(data["description"] or "")
    if "status" in data:
        fields["status"] = TaskStatus(data["status"])
    if "priority" in data:
        fields["priority"] = Priority(data["priority"])
    if "assignee" in data:
        fields["assignee"] = _member(data["assignee"])
    if "due_date" in data:
        fields["due_date"] = parse_date(data["due_date"])
    if "tags" in data:
        fields["tags"] = normalize_tags(data["tags"])
    if "project_id" in data:
        fields["project_id"] = str(data["project_id"]) if data["project_id"] else None
    return fields


def _coerce_project_fields(data: dict) -> dict:
    data = _normalize_data(data)
    fields: dict[str, Any] = {}
    if "name" in data:
        fields["name"] = _required_text(data["name"], "name")
    if "description" in data:
        fields["description"] = str(data["description"] or "")
    if "url" in data:
        fields["url"] = str(data["url"] or "").strip() or None
    if "status" in data:
        fields["status"] = ProjectStatus(data["status"])
    if "category" in data:
        fields["category"] = str(data["category"] or "").strip()
    if "tech_stack" in data:
        fields["tech_stack"] = str(data["tech_stack"] or "")
    if "owner" in data:
        fields["owner"] = _member(data["owner"])
    if "design_score" in data:
        score = int(data["design_score"])
        if not 0 <= score <= 10:
            raise ValueError(f"design score out of range: {score}")
        fields["design_score"] = score
    return fields


def _refuse(document: Document, operation: str, reason: object) -> Document:
    logger.debug("%s refused: %s", operation, reason)
    return document


def _with_completion(previous: Task, updated: Task, now: datetime) -> Task:
    if updated.status != TaskStatus.DONE:
        return replace(updated, completed_at=None)
    if previous.completed_at is None:
        return replace(updated, completed_at=now)
    return updated


def create_task(document: Document, data: dict, *, now: Optional[datetime] = None) -> Document:
    now = now or utcnow()
    try:
        fields = _coerce_task_fields(data)
    except (TypeError, ValueError) as exc:
        return _refuse(document, "create_task", exc)
    if "title" not in fields:
        return _refuse(document, "create_task", "title is required")
    task_id = str(data.get("id") or "") or new_id()
    if document.find_task(task_id) or document.find_deleted(task_id):
        return _refuse(document, "create_task", f"duplicate id {task_id!r}")

    status = fields.get("status", TaskStatus.TODO)
    task = Task(
        id=task_id,
        created_at=now,
        updated_at=now,
        completed_at=now if status == TaskStatus.DONE else None,
        **fields,
    )
    return replace(document, tasks=(task, *document.tasks))


def update_task(
    document: Document, task_id: str, data: dict, *, now: Optional[datetime] = None
) -> Document:
    now = now or utcnow()
    task = document.find_task(task_id)
    if task is None:
        return _refuse(document, "update_task", f"no task {task_id!r}")
    try:
        fields = _coerce_task_fields(data)
    except (TypeError, ValueError) as exc:
        return _refuse(document, "update_task", exc)

    updated = _with_completion(task, replace(task, **fields, updated_at=now), now)
    return replace(
        document,
        tasks=tuple(updated if item.id == task_id else item for item in document.tasks),
    )


def move_task_status(
    document: Document,
    task_id: str,
    status: TaskStatus | str,
    *,
    now: Optional[datetime] = None,
) -> Document:
    return update_task(document, task_id, {"status": status}, now=now)


def soft_delete_task(
    document: Document,
    task_id: str,
    *,
    now: Optional[datetime] = None,
    max_deleted: int = MAX_DELETED_TASKS,
) -> Document:
    now = now or utcnow()
    task = document.find_task(task_id)
    if task is None:
        return _refuse(document, "soft_delete_task", f"no task {task_id!r}")

    # newest first; overflow drops the oldest entries at the tail
    trash = (DeletedTask(task=task, deleted_at=now), *document.deleted_tasks)
    return replace(
        document,
        tasks=tuple(item for item in document.tasks if item.id != task_id),
        deleted_tasks=trash[: max(max_deleted, 0)],
    )


def restore_task(document: Document, task_id: str, *, now: Optional[datetime] = None) -> Document:
    now = now or utcnow()
    entry = document.find_deleted(task_id)
    if entry is None:
        return _refuse(document, "restore_task", f"no deleted task {task_id!r}")
    if document.find_task(task_id) is not None:
        return _refuse(document, "restore_task", f"task {task_id!r} is already live")

    restored = replace(entry.task, updated_at=now)
    return replace(
        document,
        tasks=(restored, *document.tasks),
        deleted_tasks=tuple(item for item in document.deleted_tasks if item.id != task_id),
    )


def purge_task(document: Document, task_id: str) -> Document:
    if document.find_deleted(task_id) is None:
        return _refuse(document, "purge_task", f"no deleted task {task_id!r}")
    return replace(
        document,
        deleted_tasks=tuple(item for item in document.deleted_tasks if item.id != task_id),
    )


def empty_trash(document: Document) -> Document:
    if not document.deleted_tasks:
        return document
    return replace(document, deleted_tasks=())


def create_project(document: Document, data: dict, *, now: Optional[datetime] = None) -> Document:
    now = now or utcnow()
    try:
        fields = _coerce_project_fields(data)
    except (TypeError, ValueError) as exc:
        return _refuse(document, "create_project", exc)
    if "name" not in fields:
        return _refuse(document, "create_project", "name is required")
    project_id = str(data.get("id") or "") or new_id()
    if document.find_project(project_id):
        return _refuse(document, "create_project", f"duplicate id {project_id!r}")

    project = Project(id=project_id, created_at=now, **fields)
    return replace(document, projects=(project, *document.projects))


def update_project(document: Document, project_id: str, data: dict) -> Document:
    project = document.find_project(project_id)
    if project is None:
        return _refuse(document, "update_project", f"no project {project_id!r}")
    try:
        fields = _coerce_project_fields(data)
    except (TypeError, ValueError) as exc:
        return _refuse(document, "update_project", exc)

    updated = replace(project, **fields)
    return replace(
        document,
        projects=tuple(updated if item.id == project_id else item for item in document.projects),
    )


def delete_project(document: Document, project_id: str) -> Document:
    """Remove a project; tasks keep their now dangling ``project_id``."""
    if document.find_project(project_id) is None:
        return _refuse(document, "delete_project", f"no project {project_id!r}")
    return replace(
        document,
        projects=tuple(item for item in document.projects if item.id != project_id),
    )
