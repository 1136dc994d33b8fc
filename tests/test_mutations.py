from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from tasksync.domain.entities import Document
from tasksync.domain.enums import Priority, ProjectStatus, TaskStatus
from tasksync.services import queries
from tasksync.services.mutations import (
    MAX_DELETED_TASKS,
    create_project,
    create_task,
    delete_project,
    empty_trash,
    move_task_status,
    purge_task,
    restore_task,
    soft_delete_task,
    update_project,
    update_task,
)

T0 = datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc)


def _with_task(title: str = "Fix bug", **data) -> Document:
    return create_task(Document(), {"title": title, **data}, now=T0)


def test_create_task_defaults_and_prepends() -> None:
    document = _with_task("First")
    document = create_task(document, {"title": "Second", "tags": ["ui", "ui", " bug "]}, now=T0)

    newest = document.tasks[0]
    assert [task.title for task in document.tasks] == ["Second", "First"]
    assert newest.status == TaskStatus.TODO
    assert newest.priority == Priority.MEDIUM
    assert newest.created_at == newest.updated_at == T0
    assert newest.completed_at is None
    assert newest.tags == ("ui", "bug")
    assert newest.id != document.tasks[1].id


def test_create_task_refuses_missing_title() -> None:
    document = Document()

    assert create_task(document, {"title": "   "}) is document
    assert create_task(document, {"description": "no title"}) is document


def test_create_task_refuses_unknown_enum_values() -> None:
    document = Document()

    assert create_task(document, {"title": "x", "status": "blocked"}) is document
    assert create_task(document, {"title": "x", "priority": "critical"}) is document
    assert create_task(document, {"title": "x", "assignee": "Nobody"}) is document
    assert create_task(document, {"title": "x", "due_date": "not a date"}) is document


def test_update_task_replaces_without_aliasing() -> None:
    before = _with_task()
    task_id = before.tasks[0].id
    later = T0 + timedelta(hours=1)

    after = update_task(before, task_id, {"title": "Fix the bug", "assignee": "Bob"}, now=later)

    assert before.tasks[0].title == "Fix bug"
    assert after.tasks[0].title == "Fix the bug"
    assert after.tasks[0].assignee == "Bob"
    assert after.tasks[0].updated_at == later
    assert after.tasks[0].created_at == T0


def test_update_task_refuses_unknown_id_and_empty_title() -> None:
    document = _with_task()
    task_id = document.tasks[0].id

    assert update_task(document, "missing", {"title": "x"}) is document
    assert update_task(document, task_id, {"title": ""}) is document


def test_completed_at_follows_done_transitions() -> None:
    document = _with_task()
    task_id = document.tasks[0].id
    done_at = T0 + timedelta(minutes=5)

    document = update_task(document, task_id, {"status": "in_progress"}, now=T0 + timedelta(minutes=1))
    assert document.tasks[0].completed_at is None

    document = update_task(document, task_id, {"status": TaskStatus.DONE}, now=done_at)
    task = document.tasks[0]
    assert task.completed_at == done_at
    assert task.completed_at >= task.created_at

    document = update_task(document, task_id, {"title": "Renamed"}, now=done_at + timedelta(minutes=1))
    assert document.tasks[0].completed_at == done_at

    document = update_task(document, task_id, {"status": "review"}, now=done_at + timedelta(minutes=2))
    assert document.tasks[0].completed_at is None


def test_done_scenario_moves_between_board_columns() -> None:
    document = _with_task("Fix bug", status="todo", priority="high")
    task_id = document.tasks[0].id

    document = move_task_status(document, task_id, "done", now=T0 + timedelta(minutes=1))
    board = queries.tasks_by_status(document.tasks)
    assert document.tasks[0].completed_at is not None
    assert len(board[TaskStatus.DONE]) == 1
    assert board[TaskStatus.DONE][0].id == task_id

    document = move_task_status(document, task_id, "in_progress", now=T0 + timedelta(minutes=2))
    assert document.tasks[0].completed_at is None
    assert queries.tasks_by_status(document.tasks)[TaskStatus.DONE] == []


def test_trash_keeps_most_recent_deletions() -> None:
    document = Document()
    for index in range(MAX_DELETED_TASKS + 5):
        document = create_task(document, {"title": f"Task {index}"}, now=T0)
    ids = [task.id for task in reversed(document.tasks)]

    for offset, task_id in enumerate(ids):
        document = soft_delete_task(document, task_id, now=T0 + timedelta(seconds=offset))

    assert document.tasks == ()
    assert len(document.deleted_tasks) == MAX_DELETED_TASKS
    assert [entry.id for entry in document.deleted_tasks] == list(reversed(ids))[:MAX_DELETED_TASKS]


def test_soft_delete_respects_custom_capacity() -> None:
    document = Document()
    for index in range(4):
        document = create_task(document, {"title": f"Task {index}"}, now=T0)
    for task in list(document.tasks):
        document = soft_delete_task(document, task.id, max_deleted=2)

    assert len(document.deleted_tasks) == 2


def test_restore_moves_task_back_to_front() -> None:
    document = _with_task("Keep")
    document = create_task(document, {"title": "Restore me"}, now=T0)
    task_id = document.tasks[0].id
    document = soft_delete_task(document, task_id, now=T0)
    document = create_task(document, {"title": "Newer"}, now=T0)
    restored_at = T0 + timedelta(hours=2)

    document = restore_task(document, task_id, now=restored_at)

    assert document.deleted_tasks == ()
    assert document.tasks[0].id == task_id
    assert document.tasks[0].title == "Restore me"
    assert document.tasks[0].updated_at == restored_at
    assert restore_task(document, task_id) is document


def test_purge_and_empty_trash() -> None:
    document = _with_task("One")
    document = create_task(document, {"title": "Two"}, now=T0)
    first, second = (task.id for task in document.tasks)
    document = soft_delete_task(document, first)
    document = soft_delete_task(document, second)

    document = purge_task(document, first)
    assert [entry.id for entry in document.deleted_tasks] == [second]
    assert purge_task(document, first) is document

    document = empty_trash(document)
    assert document.deleted_tasks == ()
    assert empty_trash(document) is document


def test_project_crud_and_validation() -> None:
    document = create_project(
        Document(),
        {"name": "Portal", "status": "building", "owner": "Kyle", "designScore": 7},
        now=T0,
    )
    project = document.projects[0]
    assert project.status == ProjectStatus.BUILDING
    assert project.design_score == 7

    assert create_project(document, {"name": ""}) is document
    assert update_project(document, project.id, {"design_score": 11}) is document
    assert update_project(document, project.id, {"owner": "Stranger"}) is document

    document = update_project(document, project.id, {"status": "live", "url": "https://portal.example"})
    assert document.projects[0].status == ProjectStatus.LIVE
    assert document.projects[0].url == "https://portal.example"


def test_deleting_project_leaves_tasks_dangling() -> None:
    document = create_project(Document(), {"name": "Portal"}, now=T0)
    project_id = document.projects[0].id
    document = create_task(document, {"title": "Ship it", "projectId": project_id}, now=T0)
    assert queries.project_label(document, project_id) == "Portal"

    document = delete_project(document, project_id)

    task = document.tasks[0]
    assert task.project_id == project_id
    assert queries.project_label(document, task.project_id) == queries.UNKNOWN_PROJECT_LABEL
    assert delete_project(document, project_id) is document


def test_due_date_accepts_iso_strings() -> None:
    document = _with_task(due_date="2026-02-10")

    assert document.tasks[0].due_date == date(2026, 2, 10)
