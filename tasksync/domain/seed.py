from __future__ import annotations

from .entities import Document

TEAM_MEMBERS: tuple[str, ...] = ("Jarvis", "Bob", "Justin", "Kyle", "Ethan", "Shen")

PROJECT_CATEGORIES: tuple[str, ...] = (
    "web",
    "mobile",
    "api",
    "tooling",
    "design",
    "marketing",
    "internal",
)

SAMPLE_TASKS = [
    {
        "id": "1",
        "title": "Fix Telegram API costs",
        "description": "Reduce token usage by switching to Kimi K2.5",
        "status": "in_progress",
        "priority": "urgent",
        "assignee": "Jarvis",
        "dueDate": "2026-02-06",
        "tags": ["bug", "urgent"],
        "createdAt": "2026-02-05",
        "projectId": "p1",
    },
    {
        "id": "2",
        "title": "Glass UI Dashboard upgrade",
        "description": "Apply glassmorphism to all dashboards with animations",
        "status": "todo",
        "priority": "high",
        "assignee": "Bob",
        "dueDate": "2026-02-07",
        "tags": ["design", "feature"],
        "createdAt": "2026-02-05",
        "projectId": "p2",
    },
    {
        "id": "3",
        "title": "Deploy monitoring agent",
        "description": "Watch Vercel deployments and alert on failures",
        "status": "done",
        "priority": "medium",
        "assignee": "Justin",
        "dueDate": "2026-02-05",
        "tags": ["devops"],
        "createdAt": "2026-02-04",
        "projectId": "p1",
    },
    {
        "id": "4",
        "title": "Lead generation optimization",
        "description": "Improve Kyle dashboard metrics and conversion tracking",
        "status": "review",
        "priority": "medium",
        "assignee": "Kyle",
        "dueDate": "2026-02-08",
        "tags": ["marketing"],
        "createdAt": "2026-02-03",
    },
    {
        "id": "5",
        "title": "Security audit completion",
        "description": "Full system security review and API key cleanup",
        "status": "backlog",
        "priority": "high",
        "assignee": "Ethan",
        "dueDate": "2026-02-10",
        "tags": ["security"],
        "createdAt": "2026-02-02",
    },
    {
        "id": "6",
        "title": "Cost tracking improvements",
        "description": "Better API cost monitoring with Shen dashboard",
        "status": "todo",
        "priority": "low",
        "assignee": "Shen",
        "dueDate": "2026-02-09",
        "tags": ["finance"],
        "createdAt": "2026-02-01",
    },
]

SAMPLE_PROJECTS = [
    {
        "id": "p1",
        "name": "Agent Control Center",
        "description": "Operations dashboard for the agent fleet",
        "url": None,
        "status": "live",
        "category": "internal",
        "techStack": "Next.js, Supabase",
        "owner": "Jarvis",
        "designScore": 7,
        "createdAt": "2026-01-20",
    },
    {
        "id": "p2",
        "name": "Glass UI Kit",
        "description": "Shared glassmorphism components",
        "url": None,
        "status": "building",
        "category": "design",
        "techStack": "React, Tailwind",
        "owner": "Bob",
        "designScore": 8,
        "createdAt": "2026-01-28",
    },
]


def seed_document() -> Document:
    return Document.from_payload({"tasks": SAMPLE_TASKS, "projects": SAMPLE_PROJECTS})
