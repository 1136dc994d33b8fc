"""Load-time merge of the local cache with the remote document.

The policy is last-full-writer-wins per field group: each of tasks,
projects and trash comes from the remote document when it is non-empty,
otherwise from the local cache. No per-record timestamps are compared, so a
concurrent edit made in another session since its last push is lost.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Optional

from tasksync.domain.entities import DOCUMENT_VERSION, Document
from tasksync.infra.remote_client import RemoteSnapshot

logger = logging.getLogger(__name__)


class Origin(StrEnum):
    REMOTE = "remote"
    MIGRATED = "migrated"
    LOCAL = "local"
    SEED = "seed"


@dataclass(frozen=True)
class Reconciliation:
    document: Document
    origin: Origin
    push: bool
    write_cache: bool


def _decode(snapshot: RemoteSnapshot) -> Optional[Document]:
    try:
        document = Document.from_payload(snapshot.payload)
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("Discarding malformed remote document: %s", exc)
        return None
    return replace(document, last_updated=snapshot.last_updated)


def remote_document(
    snapshot: RemoteSnapshot, *, expected_version: int = DOCUMENT_VERSION
) -> Optional[Document]:
    """Return the remote document when it carries authoritative data of the expected shape."""
    if not snapshot.source.authoritative:
        return None
    if snapshot.version != expected_version:
        logger.info(
            "Remote document version %s does not match %s", snapshot.version, expected_version
        )
        return None
    return _decode(snapshot)


def legacy_document(
    snapshot: RemoteSnapshot, *, expected_version: int = DOCUMENT_VERSION
) -> Optional[Document]:
    """Upgrade an older remote document shape; newer shapes are never adopted."""
    if not snapshot.source.authoritative or snapshot.version is None:
        return None
    if snapshot.version >= expected_version:
        return None
    return _decode(snapshot)


def reconcile(
    local: Document,
    snapshot: RemoteSnapshot,
    *,
    seed: Document,
    expected_version: int = DOCUMENT_VERSION,
) -> Reconciliation:
    remote = remote_document(snapshot, expected_version=expected_version)
    if remote is not None and not remote.is_empty:
        merged = Document(
            tasks=remote.tasks or local.tasks,
            projects=remote.projects or local.projects,
            deleted_tasks=remote.deleted_tasks or local.deleted_tasks,
            last_updated=remote.last_updated,
        )
        return Reconciliation(
            document=merged,
            origin=Origin.REMOTE,
            push=not merged.same_content(remote),
            write_cache=True,
        )

    if not local.is_empty:
        return Reconciliation(document=local, origin=Origin.LOCAL, push=True, write_cache=False)

    migrated = legacy_document(snapshot, expected_version=expected_version)
    if migrated is not None and not migrated.is_empty:
        logger.info("Upgrading remote document from version %s", snapshot.version)
        return Reconciliation(document=migrated, origin=Origin.MIGRATED, push=True, write_cache=True)

    return Reconciliation(
        document=replace(seed, deleted_tasks=local.deleted_tasks),
        origin=Origin.SEED,
        push=False,
        write_cache=False,
    )
