from __future__ import annotations

from datetime import datetime, timezone

from tasksync.domain.entities import Document
from tasksync.domain.seed import seed_document
from tasksync.infra.db import create_db_engine, create_session_factory, init_db
from tasksync.infra.local_cache import TASKS_KEY, LocalCache
from tasksync.infra.models import CacheEntryModel
from tasksync.services.mutations import create_task, soft_delete_task


def make_session_factory():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    return create_session_factory(engine)


def test_document_round_trip_preserves_order() -> None:
    cache = LocalCache(make_session_factory())
    document = seed_document()
    document = create_task(document, {"title": "Fresh", "tags": ["b", "a"]})
    document = soft_delete_task(document, "3", now=datetime(2026, 2, 6, 12, 30, 15, 123456, tzinfo=timezone.utc))

    cache.save_document(document)
    loaded = cache.load_document()

    assert loaded.tasks == document.tasks
    assert loaded.projects == document.projects
    assert loaded.deleted_tasks == document.deleted_tasks
    assert [task.id for task in loaded.tasks] == [task.id for task in document.tasks]


def test_missing_keys_return_defaults() -> None:
    cache = LocalCache(make_session_factory())

    assert cache.load("nothing", ["default"]) == ["default"]
    assert cache.load_document() == Document()


def test_corrupt_entries_fall_back_to_defaults() -> None:
    session_factory = make_session_factory()
    cache = LocalCache(session_factory)
    with session_factory() as session:
        session.add(CacheEntryModel(key=f"pm-{TASKS_KEY}", value="{not json"))
        session.add(CacheEntryModel(key="pm-projects", value='[{"name": "no id"}]'))
        session.commit()

    assert cache.load(TASKS_KEY, []) == []
    document = cache.load_document()
    assert document.tasks == ()
    assert document.projects == ()


def test_unserializable_value_is_dropped() -> None:
    cache = LocalCache(make_session_factory())

    cache.save("broken", {"when": object()})

    assert cache.load("broken", "fallback") == "fallback"


def test_prefixes_are_isolated() -> None:
    session_factory = make_session_factory()
    first = LocalCache(session_factory, prefix="one")
    second = LocalCache(session_factory, prefix="two")

    first.save("tasks", [1, 2])

    assert first.load("tasks") == [1, 2]
    assert second.load("tasks", []) == []


def test_cache_without_store_is_a_no_op() -> None:
    cache = LocalCache(None)

    cache.save_document(seed_document())

    assert cache.available is False
    assert cache.load("tasks", "default") == "default"
    assert cache.load_document() == Document()


def test_non_object_entries_fall_back_to_defaults() -> None:
    session_factory = make_session_factory()
    cache = LocalCache(session_factory)
    with session_factory() as session:
        session.add(CacheEntryModel(key=f"pm-{TASKS_KEY}", value='["oops"]'))
        session.add(CacheEntryModel(key="pm-deleted-tasks", value="[null]"))
        session.commit()

    document = cache.load_document()

    assert document.tasks == ()
    assert document.deleted_tasks == ()
