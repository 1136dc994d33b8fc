from __future__ import annotations

from datetime import date

from tasksync.domain.enums import Priority, TaskStatus
from tasksync.domain.filters import TaskFilters
from tasksync.domain.seed import TEAM_MEMBERS, seed_document
from tasksync.services import queries

TODAY = date(2026, 2, 7)


def test_board_has_every_column_in_order() -> None:
    board = queries.tasks_by_status(seed_document().tasks)

    assert list(board) == list(TaskStatus)
    assert [len(column) for column in board.values()] == [1, 2, 1, 1, 1]


def test_stats_count_overdue_open_tasks_only() -> None:
    stats = queries.compute_stats(seed_document().tasks, today=TODAY)

    # task 1 (due 02-06, in progress) is overdue, task 3 is done
    assert stats == {"total": 6, "completed": 1, "in_progress": 1, "overdue": 1}


def test_priority_and_workload_breakdowns() -> None:
    tasks = seed_document().tasks

    priorities = queries.priority_breakdown(tasks)
    assert list(priorities) == [Priority.URGENT, Priority.HIGH, Priority.MEDIUM, Priority.LOW]
    assert priorities[Priority.HIGH] == 2

    workload = queries.team_workload(tasks)
    assert list(workload) == list(TEAM_MEMBERS)
    assert all(count == 1 for count in workload.values())


def test_calendar_and_recent_lookups() -> None:
    tasks = seed_document().tasks

    assert [task.id for task in queries.tasks_due_on(tasks, date(2026, 2, 7))] == ["2"]
    recent = queries.recent_tasks(tasks, limit=2)
    assert [task.id for task in recent] == ["1", "2"]


def test_filter_tasks() -> None:
    tasks = seed_document().tasks

    assert [t.id for t in queries.filter_tasks(tasks, TaskFilters(filter_key="todo"))] == ["2", "6"]
    assert [t.id for t in queries.filter_tasks(tasks, TaskFilters(filter_key="overdue"), today=TODAY)] == ["1"]
    upcoming = queries.filter_tasks(tasks, TaskFilters(filter_key="upcoming"), today=TODAY)
    assert [t.id for t in upcoming] == ["2", "4", "5", "6"]
    assert [t.id for t in queries.filter_tasks(tasks, TaskFilters(search="GLASS"))] == ["2"]
    assert [t.id for t in queries.filter_tasks(tasks, TaskFilters(search="devops"))] == ["3"]
    assert [t.id for t in queries.filter_tasks(tasks, TaskFilters(assignee="Kyle"))] == ["4"]
    assert [t.id for t in queries.filter_tasks(tasks, TaskFilters(project_id="p1"))] == ["1", "3"]


def test_project_label_fallbacks() -> None:
    document = seed_document()

    assert queries.project_label(document, "p1") == "Agent Control Center"
    assert queries.project_label(document, None) == queries.NO_PROJECT_LABEL
    assert queries.project_label(document, "gone") == queries.UNKNOWN_PROJECT_LABEL
