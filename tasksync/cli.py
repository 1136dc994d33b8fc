from __future__ import annotations

import argparse
import sys
from typing import TextIO

from tasksync.domain.entities import Document, Task
from tasksync.domain.enums import Priority, ProjectStatus, SyncStatus, TaskStatus
from tasksync.domain.filters import TaskFilters
from tasksync.domain.seed import PROJECT_CATEGORIES, TEAM_MEMBERS
from tasksync.services import queries
from tasksync.services.sync_coordinator import SyncCoordinator

SYNC_LABELS = {
    SyncStatus.IDLE: "Idle",
    SyncStatus.SYNCING: "Syncing",
    SyncStatus.SAVED: "Saved",
    SyncStatus.ERROR: "Offline",
}

VIEWS = ("board", "list", "stats", "trash", "projects")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tasksync", description="Task and project tracker")
    parser.add_argument("-v", "--verbose", action="store_true", help="log at DEBUG level")
    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="print a view of the document")
    show.add_argument("--view", choices=VIEWS, default="board")
    show.add_argument("--filter", dest="filter_key", default="all")
    show.add_argument("--search")
    show.add_argument("--assignee", choices=TEAM_MEMBERS)
    show.add_argument("--project")

    add = sub.add_parser("add", help="create a task")
    add.add_argument("title")
    add.add_argument("--description", default="")
    add.add_argument("--status", choices=[s.value for s in TaskStatus], default=TaskStatus.TODO.value)
    add.add_argument("--priority", choices=[p.value for p in Priority], default=Priority.MEDIUM.value)
    add.add_argument("--assignee", choices=TEAM_MEMBERS)
    add.add_argument("--due", help="ISO date, e.g. 2026-02-10")
    add.add_argument("--tag", action="append", default=[])
    add.add_argument("--project")

    update = sub.add_parser("update", help="edit a task")
    update.add_argument("task_id")
    update.add_argument("--title")
    update.add_argument("--description")
    update.add_argument("--priority", choices=[p.value for p in Priority])
    update.add_argument("--assignee", help="team member, or empty to unassign")
    update.add_argument("--due", help="ISO date, or empty to clear")
    update.add_argument("--tag", action="append")
    update.add_argument("--project", help="project id, or empty to clear")

    move = sub.add_parser("move", help="change a task's status")
    move.add_argument("task_id")
    move.add_argument("status", choices=[s.value for s in TaskStatus])

    for name, help_text in (
        ("delete", "move a task to the trash"),
        ("restore", "bring a task back from the trash"),
        ("purge", "permanently remove a task from the trash"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("task_id")

    sub.add_parser("empty-trash", help="permanently remove every task in the trash")

    project_add = sub.add_parser("project-add", help="create a project")
    project_add.add_argument("name")
    project_add.add_argument("--description", default="")
    project_add.add_argument("--url")
    project_add.add_argument(
        "--status", choices=[s.value for s in ProjectStatus], default=ProjectStatus.PLANNED.value
    )
    project_add.add_argument("--category", default=PROJECT_CATEGORIES[-1])
    project_add.add_argument("--tech-stack", default="")
    project_add.add_argument("--owner", choices=TEAM_MEMBERS)
    project_add.add_argument("--design-score", type=int, default=0)

    project_delete = sub.add_parser("project-delete", help="delete a project (tasks keep their reference)")
    project_delete.add_argument("project_id")

    sub.add_parser("sync", help="load, push any pending changes and report status")

    serve = sub.add_parser("serve", help="run the remote document store")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)
    return parser


def _task_line(document: Document, task: Task) -> str:
    parts = [f"[{task.id}]", task.title, f"({task.priority.value})"]
    if task.assignee:
        parts.append(f"@{task.assignee}")
    if task.due_date:
        parts.append(f"due {task.due_date.isoformat()}")
    parts.append(f"#{queries.project_label(document, task.project_id)}")
    return " ".join(parts)


def _render(args: argparse.Namespace, document: Document, out: TextIO) -> None:
    filters = TaskFilters(
        filter_key=args.filter_key,
        search=args.search,
        assignee=args.assignee,
        project_id=args.project,
    )
    tasks = queries.filter_tasks(document.tasks, filters)

    if args.view == "board":
        for status, column in queries.tasks_by_status(tasks).items():
            print(f"{queries.STATUS_LABELS[status]} ({len(column)})", file=out)
            for task in column:
                print(f"  {_task_line(document, task)}", file=out)
    elif args.view == "list":
        for task in tasks:
            print(f"{queries.STATUS_LABELS[task.status]:<12} {_task_line(document, task)}", file=out)
    elif args.view == "stats":
        for key, value in queries.compute_stats(tasks).items():
            print(f"{key}: {value}", file=out)
        for priority, count in queries.priority_breakdown(tasks).items():
            print(f"priority {priority.value}: {count}", file=out)
        for member, count in queries.team_workload(tasks).items():
            print(f"{member}: {count}", file=out)
    elif args.view == "trash":
        for entry in document.deleted_tasks:
            print(f"[{entry.id}] {entry.task.title} (deleted {entry.deleted_at:%Y-%m-%d %H:%M})", file=out)
    elif args.view == "projects":
        for project in document.projects:
            print(
                f"[{project.id}] {project.name} ({project.status.value}, {project.category or '-'})",
                file=out,
            )


def _update_fields(args: argparse.Namespace) -> dict:
    fields: dict = {}
    for attr, key in (
        ("title", "title"),
        ("description", "description"),
        ("priority", "priority"),
        ("assignee", "assignee"),
        ("due", "due_date"),
        ("tag", "tags"),
        ("project", "project_id"),
    ):
        value = getattr(args, attr)
        if value is not None:
            fields[key] = value
    return fields


def _report(ok: bool, message: str, out: TextIO) -> int:
    print(message if ok else f"Nothing changed: {message}", file=out)
    return 0 if ok else 1


def dispatch(args: argparse.Namespace, coordinator: SyncCoordinator, out: TextIO) -> int:
    command = args.command
    if command == "show":
        _render(args, coordinator.document, out)
        return 0
    if command == "add":
        task = coordinator.create_task(
            {
                "title": args.title,
                "description": args.description,
                "status": args.status,
                "priority": args.priority,
                "assignee": args.assignee,
                "due_date": args.due,
                "tags": args.tag,
                "project_id": args.project,
            }
        )
        return _report(task is not None, f"created {task.id}" if task else "invalid task", out)
    if command == "update":
        task = coordinator.update_task(args.task_id, _update_fields(args))
        return _report(task is not None, f"updated {args.task_id}", out)
    if command == "move":
        task = coordinator.move_task_status(args.task_id, args.status)
        return _report(task is not None, f"moved {args.task_id} to {args.status}", out)
    if command == "delete":
        return _report(coordinator.soft_delete_task(args.task_id), f"deleted {args.task_id}", out)
    if command == "restore":
        task = coordinator.restore_task(args.task_id)
        return _report(task is not None, f"restored {args.task_id}", out)
    if command == "purge":
        return _report(coordinator.purge_task(args.task_id), f"purged {args.task_id}", out)
    if command == "empty-trash":
        return _report(coordinator.empty_trash(), "trash emptied", out)
    if command == "project-add":
        project = coordinator.create_project(
            {
                "name": args.name,
                "description": args.description,
                "url": args.url,
                "status": args.status,
                "category": args.category,
                "tech_stack": args.tech_stack,
                "owner": args.owner,
                "design_score": args.design_score,
            }
        )
        return _report(project is not None, f"created {project.id}" if project else "invalid project", out)
    if command == "project-delete":
        return _report(coordinator.delete_project(args.project_id), f"deleted {args.project_id}", out)
    if command == "sync":
        return 0
    raise ValueError(f"unknown command: {command}")


async def run_command(
    args: argparse.Namespace, coordinator: SyncCoordinator, out: TextIO = sys.stdout
) -> int:
    await coordinator.load()
    try:
        code = dispatch(args, coordinator, out)
    finally:
        synced = await coordinator.close()

    label = SYNC_LABELS[coordinator.status]
    last = coordinator.last_synced or "never"
    print(f"{label} (last synced: {last})", file=out)
    if args.command == "sync" and not synced:
        return 1
    return code
