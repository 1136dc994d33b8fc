from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from tasksync.domain.entities import Document, Task
from tasksync.domain.enums import Priority, TaskStatus
from tasksync.domain.filters import TaskFilters
from tasksync.domain.seed import TEAM_MEMBERS

NO_PROJECT_LABEL = "No project"
UNKNOWN_PROJECT_LABEL = "Unknown project"

_STATUS_KEYS = {status.value for status in TaskStatus}

STATUS_LABELS = {
    TaskStatus.BACKLOG: "Backlog",
    TaskStatus.TODO: "To Do",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.REVIEW: "Review",
    TaskStatus.DONE: "Done",
}


def _is_overdue(task: Task, today: date) -> bool:
    return task.due_date is not None and task.due_date < today and task.status != TaskStatus.DONE


def project_label(document: Document, project_id: Optional[str]) -> str:
    if not project_id:
        return NO_PROJECT_LABEL
    project = document.find_project(project_id)
    return project.name if project else UNKNOWN_PROJECT_LABEL


def tasks_by_status(tasks: Iterable[Task]) -> dict[TaskStatus, list[Task]]:
    grouped: dict[TaskStatus, list[Task]] = {status: [] for status in TaskStatus}
    for task in tasks:
        grouped[task.status].append(task)
    return grouped


def compute_stats(tasks: Sequence[Task], today: Optional[date] = None) -> dict[str, int]:
    today = today or date.today()
    return {
        "total": len(tasks),
        "completed": sum(1 for task in tasks if task.status == TaskStatus.DONE),
        "in_progress": sum(1 for task in tasks if task.status == TaskStatus.IN_PROGRESS),
        "overdue": sum(1 for task in tasks if _is_overdue(task, today)),
    }


def priority_breakdown(tasks: Iterable[Task]) -> dict[Priority, int]:
    counts = {priority: 0 for priority in reversed(Priority)}
    for task in tasks:
        counts[task.priority] += 1
    return counts


def team_workload(tasks: Iterable[Task]) -> dict[str, int]:
    counts = {member: 0 for member in TEAM_MEMBERS}
    for task in tasks:
        if task.assignee in counts:
            counts[task.assignee] += 1
    return counts


def tasks_due_on(tasks: Iterable[Task], day: date) -> list[Task]:
    return [task for task in tasks if task.due_date == day]


def recent_tasks(tasks: Iterable[Task], limit: int = 6) -> list[Task]:
    return sorted(tasks, key=lambda task: task.updated_at, reverse=True)[:limit]


def _matches_search(task: Task, needle: str) -> bool:
    haystacks = [task.title, task.description, *task.tags]
    return any(needle in text.lower() for text in haystacks)


def filter_tasks(
    tasks: Iterable[Task], filters: TaskFilters, today: Optional[date] = None
) -> list[Task]:
    today = today or date.today()
    result = list(tasks)

    key = filters.filter_key
    if key in _STATUS_KEYS:
        result = [task for task in result if task.status == key]
    elif key == "overdue":
        result = [task for task in result if _is_overdue(task, today)]
    elif key == "upcoming":
        horizon = today + timedelta(days=7)
        result = [
            task
            for task in result
            if task.due_date is not None
            and today <= task.due_date <= horizon
            and task.status != TaskStatus.DONE
        ]

    if filters.due_on:
        result = [task for task in result if task.due_date == filters.due_on]
    if filters.assignee:
        result = [task for task in result if task.assignee == filters.assignee]
    if filters.project_id:
        result = [task for task in result if task.project_id == filters.project_id]
    if filters.search:
        needle = filters.search.strip().lower()
        result = [task for task in result if _matches_search(task, needle)]

    return result
