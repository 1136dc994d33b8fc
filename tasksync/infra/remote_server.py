"""HTTP endpoint for the remote document store.

``GET /data`` never fails with a non-200 status: an unconfigured or broken
store degrades to empty collections tagged ``no-db`` or ``error``.
``POST /data`` replaces the whole document and stamps ``lastUpdated``.
"""
from __future__ import annotations

import json
import logging
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse

from sqlalchemy.exc import SQLAlchemyError

from tasksync.domain.entities import LEGACY_DOCUMENT_VERSION
from tasksync.domain.enums import DocumentSource

from .remote_client import DATA_PATH
from .repository import DocumentRepository

logger = logging.getLogger(__name__)


def _empty_payload(source: DocumentSource) -> Dict[str, Any]:
    return {
        "tasks": [],
        "projects": [],
        "deletedTasks": [],
        "lastUpdated": None,
        "version": None,
        "source": source.value,
    }


def read_document_payload(repository: Optional[DocumentRepository], key: str) -> Dict[str, Any]:
    if repository is None:
        return _empty_payload(DocumentSource.NO_DB)
    try:
        value = repository.get_document(key)
        if not value:
            return _empty_payload(DocumentSource.EMPTY)
        return {
            "tasks": value.get("tasks") or [],
            "projects": value.get("projects") or [],
            "deletedTasks": value.get("deletedTasks") or [],
            "lastUpdated": value.get("lastUpdated"),
            "version": int(value.get("version") or LEGACY_DOCUMENT_VERSION),
            "source": DocumentSource.REMOTE.value,
        }
    except (SQLAlchemyError, TypeError, ValueError) as exc:
        logger.error("GET error: %s", exc)
        return _empty_payload(DocumentSource.ERROR)


def _list_field(body: Dict[str, Any], name: str) -> list:
    value = body.get(name) or []
    if not isinstance(value, list):
        raise ValueError(f"{name} must be a list")
    if not all(isinstance(item, dict) for item in value):
        raise ValueError(f"{name} must hold objects")
    return value


def write_document_payload(
    repository: Optional[DocumentRepository], key: str, body: Optional[Dict[str, Any]]
) -> Tuple[int, Dict[str, Any]]:
    if repository is None:
        return HTTPStatus.INTERNAL_SERVER_ERROR, {
            "success": False,
            "error": "Database not configured",
            "source": DocumentSource.NO_DB.value,
        }
    try:
        if body is None:
            raise ValueError("request body must be a JSON object")
        value = {
            "tasks": _list_field(body, "tasks"),
            "projects": _list_field(body, "projects"),
            "deletedTasks": _list_field(body, "deletedTasks"),
            "version": int(body.get("version") or LEGACY_DOCUMENT_VERSION),
        }
    except (TypeError, ValueError) as exc:
        return HTTPStatus.BAD_REQUEST, {
            "success": False,
            "error": str(exc),
            "source": DocumentSource.ERROR.value,
        }
    try:
        last_updated = repository.save_document(key, value)
    except SQLAlchemyError as exc:
        logger.error("POST error: %s", exc)
        return HTTPStatus.INTERNAL_SERVER_ERROR, {
            "success": False,
            "error": str(exc),
            "source": DocumentSource.ERROR.value,
        }
    return HTTPStatus.OK, {
        "success": True,
        "lastUpdated": last_updated,
        "source": DocumentSource.REMOTE.value,
    }


class DocumentStoreHandler(BaseHTTPRequestHandler):
    repository: Optional[DocumentRepository] = None
    document_key = "project-manager-data"

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s %s", self.address_string(), format % args)

    def _send_json(self, payload: Dict[str, Any], status: int = 200) -> None:
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Cache-Control", "no-store")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _parse_json_body(self) -> Optional[Dict[str, Any]]:
        try:
            length = int(self.headers.get("Content-Length", "0"))
        except ValueError:
            length = 0
        raw = self.rfile.read(max(0, length))
        try:
            data = json.loads(raw.decode("utf-8"))
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    def do_GET(self) -> None:
        if urlparse(self.path).path != DATA_PATH:
            self._send_json({"error": "not found"}, status=HTTPStatus.NOT_FOUND)
            return
        self._send_json(read_document_payload(self.repository, self.document_key))

    def do_POST(self) -> None:
        if urlparse(self.path).path != DATA_PATH:
            self._send_json({"success": False, "error": "not found"}, status=HTTPStatus.NOT_FOUND)
            return
        status, payload = write_document_payload(
            self.repository, self.document_key, self._parse_json_body()
        )
        self._send_json(payload, status=status)


def create_server(
    host: str,
    port: int,
    repository: Optional[DocumentRepository],
    document_key: str,
) -> ThreadingHTTPServer:
    handler = type(
        "BoundDocumentStoreHandler",
        (DocumentStoreHandler,),
        {"repository": repository, "document_key": document_key},
    )
    return ThreadingHTTPServer((host, port), handler)
