from __future__ import annotations

import asyncio
import logging
import sys
from http.server import ThreadingHTTPServer

from tasksync.cli import build_parser, run_command
from tasksync.config import SETTINGS, Settings
from tasksync.infra.db import create_db_engine, create_session_factory, init_db
from tasksync.infra.local_cache import LocalCache
from tasksync.infra.logging import setup_logging
from tasksync.infra.remote_client import RemoteDocumentClient
from tasksync.infra.remote_server import create_server
from tasksync.infra.repository import DocumentRepository
from tasksync.services.sync_coordinator import SyncCoordinator

logger = logging.getLogger(__name__)


def build_cache(settings: Settings) -> LocalCache:
    if not settings.cache_database_url:
        return LocalCache(None, settings.cache_prefix)
    try:
        engine = create_db_engine(settings.cache_database_url)
        init_db(engine)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Local cache unavailable, continuing without it: %s", exc)
        return LocalCache(None, settings.cache_prefix)
    return LocalCache(create_session_factory(engine), settings.cache_prefix)


def build_coordinator(settings: Settings = SETTINGS) -> SyncCoordinator:
    return SyncCoordinator(
        build_cache(settings),
        RemoteDocumentClient(settings.remote_url, settings.remote_timeout),
        debounce_seconds=settings.debounce_seconds,
        max_deleted=settings.max_deleted_tasks,
    )


def build_server(
    settings: Settings = SETTINGS, host: str | None = None, port: int | None = None
) -> ThreadingHTTPServer:
    repository = None
    if settings.store_database_url:
        engine = create_db_engine(settings.store_database_url)
        init_db(engine)
        repository = DocumentRepository(create_session_factory(engine))
    else:
        logger.warning("STORE_DATABASE_URL is not set; serving no-db responses")
    return create_server(
        host or settings.server_host,
        port if port is not None else settings.server_port,
        repository,
        settings.document_key,
    )


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(SETTINGS, "DEBUG" if args.verbose else None)

    if args.command == "serve":
        try:
            server = build_server(SETTINGS, args.host, args.port)
        except Exception as exc:  # noqa: BLE001
            logger.error("Store server failed to start: %s", exc)
            sys.exit(1)
        host, port = server.server_address[:2]
        logger.info("Document store listening on http://%s:%s", host, port)
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
        finally:
            server.server_close()
        return

    sys.exit(asyncio.run(run_command(args, build_coordinator(SETTINGS))))


if __name__ == "__main__":
    main()
