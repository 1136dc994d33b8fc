"""Owner of the editable document and its write-through persistence.

Every accepted mutation replaces the in-memory snapshot, is written to the
local cache before returning, and (re)arms a single-slot debounce timer for
the remote write. At most one remote POST is in flight; a write that fires
while another is outstanding waits for it and then sends the newest
snapshot.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from tasksync.domain.entities import DOCUMENT_VERSION, Document, Project, Task, utcnow
from tasksync.domain.enums import SyncStatus, TaskStatus
from tasksync.domain.seed import seed_document
from tasksync.infra.local_cache import LAST_UPDATED_KEY, LocalCache
from tasksync.infra.remote_client import RemoteDocumentClient

from . import mutations
from .reconcile import Origin, reconcile

logger = logging.getLogger(__name__)

Listener = Callable[[Document, SyncStatus], None]
Transform = Callable[[Document], Document]


class SyncCoordinator:
    def __init__(
        self,
        cache: LocalCache,
        remote: RemoteDocumentClient,
        *,
        debounce_seconds: float = 1.0,
        max_deleted: int = mutations.MAX_DELETED_TASKS,
        seed: Optional[Document] = None,
        expected_version: int = DOCUMENT_VERSION,
    ) -> None:
        self._cache = cache
        self._remote = remote
        self._debounce_seconds = debounce_seconds
        self._max_deleted = max_deleted
        self._seed = seed if seed is not None else seed_document()
        self._expected_version = expected_version

        self._document = Document()
        self._status = SyncStatus.IDLE
        self._last_synced: Optional[str] = None
        self._listeners: list[Listener] = []

        self._revision = 0
        self._pushed_revision = 0
        self._loading = False
        self._journal: list[Transform] = []
        self._pending: Optional[asyncio.TimerHandle] = None
        self._push_lock = asyncio.Lock()
        self._push_tasks: set[asyncio.Task] = set()

    @property
    def document(self) -> Document:
        return self._document

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def last_synced(self) -> Optional[str]:
        return self._last_synced

    @property
    def has_pending_write(self) -> bool:
        return self._revision != self._pushed_revision

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._document, self._status)
            except Exception:  # noqa: BLE001
                logger.exception("Listener %r failed", listener)

    def _set_status(self, status: SyncStatus) -> None:
        if status == self._status:
            return
        self._status = status
        self._notify()

    async def load(self) -> Document:
        """Show the cached snapshot at once, then reconcile with the remote copy.

        Mutations accepted while the remote GET is outstanding are replayed
        on top of the reconciled document.
        """
        self._loading = True
        self._status = SyncStatus.SYNCING
        local = self._cache.load_document()
        if local.is_empty:
            self._document = Document(
                tasks=self._seed.tasks,
                projects=self._seed.projects,
                deleted_tasks=local.deleted_tasks,
            )
        else:
            self._document = local
        self._last_synced = local.last_updated
        self._notify()

        try:
            snapshot = await asyncio.to_thread(self._remote.fetch)
        except asyncio.CancelledError:
            self._loading = False
            self._journal.clear()
            raise
        result = reconcile(
            local, snapshot, seed=self._seed, expected_version=self._expected_version
        )
        logger.info("Loaded document from %s (remote source: %s)", result.origin, snapshot.source)

        document = result.document
        for transform in self._journal:
            document = transform(document)
        edited = bool(self._journal)
        self._journal.clear()
        self._loading = False

        self._document = document
        self._revision += 1
        if result.origin in (Origin.REMOTE, Origin.MIGRATED):
            self._last_synced = result.document.last_updated
        if result.write_cache or edited:
            self._cache.save_document(document)

        if result.push or edited:
            self._notify()
            await self._push()
        else:
            self._pushed_revision = self._revision
            self._status = SyncStatus.SAVED
            self._notify()
        return self._document

    def _apply(self, transform: Transform) -> bool:
        result = transform(self._document)
        if result is self._document:
            return False
        if self._loading:
            self._journal.append(transform)
        self._document = result
        self._revision += 1
        self._cache.save_document(result)
        self._schedule_push()
        self._notify()
        return True

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _schedule_push(self) -> None:
        if self._loading:
            return
        self._cancel_pending()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; remote write deferred until flush")
            return
        self._pending = loop.call_later(self._debounce_seconds, self._fire)

    def _fire(self) -> None:
        self._pending = None
        task = asyncio.ensure_future(self._push())
        self._push_tasks.add(task)
        task.add_done_callback(self._push_tasks.discard)

    async def _push(self) -> bool:
        async with self._push_lock:
            revision = self._revision
            if revision == self._pushed_revision:
                return True
            document = self._document
            self._set_status(SyncStatus.SYNCING)
            result = await asyncio.to_thread(self._remote.push, document)
            if not result.success:
                logger.warning("Remote write failed: %s", result.error)
                self._set_status(SyncStatus.ERROR)
                return False
            self._pushed_revision = max(self._pushed_revision, revision)
            self._last_synced = result.last_updated
            if result.last_updated is not None:
                self._cache.save(LAST_UPDATED_KEY, result.last_updated)
            self._set_status(SyncStatus.SAVED)
            return True

    async def flush(self) -> bool:
        """Push the current snapshot now, skipping any pending debounce."""
        self._cancel_pending()
        return await self._push()

    async def close(self) -> bool:
        self._cancel_pending()
        if self._push_tasks:
            await asyncio.gather(*self._push_tasks, return_exceptions=True)
        return await self._push()

    # Mutation intents

    def create_task(self, data: dict) -> Optional[Task]:
        now = utcnow()
        data = {**data, "id": data.get("id") or mutations.new_id()}
        if not self._apply(lambda document: mutations.create_task(document, data, now=now)):
            return None
        return self._document.find_task(data["id"])

    def update_task(self, task_id: str, data: dict) -> Optional[Task]:
        now = utcnow()
        data = dict(data)
        if not self._apply(lambda document: mutations.update_task(document, task_id, data, now=now)):
            return None
        return self._document.find_task(task_id)

    def move_task_status(self, task_id: str, status: TaskStatus | str) -> Optional[Task]:
        now = utcnow()
        if not self._apply(
            lambda document: mutations.move_task_status(document, task_id, status, now=now)
        ):
            return None
        return self._document.find_task(task_id)

    def soft_delete_task(self, task_id: str) -> bool:
        now = utcnow()
        return self._apply(
            lambda document: mutations.soft_delete_task(
                document, task_id, now=now, max_deleted=self._max_deleted
            )
        )

    def restore_task(self, task_id: str) -> Optional[Task]:
        now = utcnow()
        if not self._apply(lambda document: mutations.restore_task(document, task_id, now=now)):
            return None
        return self._document.find_task(task_id)

    def purge_task(self, task_id: str) -> bool:
        return self._apply(lambda document: mutations.purge_task(document, task_id))

    def empty_trash(self) -> bool:
        return self._apply(mutations.empty_trash)

    def create_project(self, data: dict) -> Optional[Project]:
        now = utcnow()
        data = {**data, "id": data.get("id") or mutations.new_id()}
        if not self._apply(lambda document: mutations.create_project(document, data, now=now)):
            return None
        return self._document.find_project(data["id"])

    def update_project(self, project_id: str, data: dict) -> Optional[Project]:
        data = dict(data)
        if not self._apply(lambda document: mutations.update_project(document, project_id, data)):
            return None
        return self._document.find_project(project_id)

    def delete_project(self, project_id: str) -> bool:
        return self._apply(lambda document: mutations.delete_project(document, project_id))
