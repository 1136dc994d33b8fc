from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from tasksync.domain.entities import LEGACY_DOCUMENT_VERSION, Document
from tasksync.domain.enums import DocumentSource

logger = logging.getLogger(__name__)

DATA_PATH = "/data"


@dataclass(frozen=True)
class RemoteSnapshot:
    source: DocumentSource
    payload: Dict[str, Any] = field(default_factory=dict)
    version: Optional[int] = None
    last_updated: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class PushResult:
    success: bool
    last_updated: Optional[str] = None
    error: Optional[str] = None


def _read_json(resp) -> Any:
    raw = resp.read().decode("utf-8")
    return json.loads(raw) if raw else {}


def _source(value: Any) -> DocumentSource:
    try:
        return DocumentSource(str(value or DocumentSource.ERROR.value))
    except ValueError:
        return DocumentSource.ERROR


class RemoteDocumentClient:
    """GET/POST client for the single remote document.

    Neither call raises: transport and decode failures come back as an
    ``error`` snapshot or an unsuccessful :class:`PushResult`.
    """

    def __init__(self, base_url: str | None, timeout: float | None = None) -> None:
        self._base_url = base_url.rstrip("/") if base_url else None
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return self._base_url is not None

    @property
    def url(self) -> str | None:
        return f"{self._base_url}{DATA_PATH}" if self._base_url else None

    def _open(self, req):
        if self._timeout is None:
            return urlopen(req)
        return urlopen(req, timeout=self._timeout)

    def fetch(self) -> RemoteSnapshot:
        if not self.configured:
            return RemoteSnapshot(source=DocumentSource.NO_DB)
        try:
            with self._open(self.url) as resp:
                data = _read_json(resp)
        except HTTPError as exc:
            logger.warning("GET %s failed: HTTP %s", self.url, exc.code)
            return RemoteSnapshot(source=DocumentSource.ERROR, error=f"HTTP {exc.code}")
        except (URLError, TimeoutError, OSError, ValueError) as exc:
            logger.warning("GET %s failed: %s", self.url, exc)
            return RemoteSnapshot(source=DocumentSource.ERROR, error=str(exc))

        if not isinstance(data, dict):
            return RemoteSnapshot(source=DocumentSource.ERROR, error="malformed response")

        raw_version = data.get("version")
        try:
            version = int(raw_version) if raw_version is not None else LEGACY_DOCUMENT_VERSION
        except (TypeError, ValueError):
            return RemoteSnapshot(source=DocumentSource.ERROR, error=f"bad version {raw_version!r}")

        return RemoteSnapshot(
            source=_source(data.get("source")),
            payload=data,
            version=version,
            last_updated=data.get("lastUpdated"),
        )

    def push(self, document: Document) -> PushResult:
        if not self.configured:
            return PushResult(success=False, error="Database not configured")
        body = json.dumps(document.to_payload(), ensure_ascii=False).encode("utf-8")
        req = Request(self.url, data=body, headers={"Content-Type": "application/json"}, method="POST")
        try:
            with self._open(req) as resp:
                data = _read_json(resp)
        except HTTPError as exc:
            # store-level failures answer 500 with a JSON error body
            try:
                data = _read_json(exc)
            except (OSError, ValueError):
                data = {}
            error = data.get("error") if isinstance(data, dict) else None
            logger.warning("POST %s failed: HTTP %s %s", self.url, exc.code, error or "")
            return PushResult(success=False, error=str(error or f"HTTP {exc.code}"))
        except (URLError, TimeoutError, OSError, ValueError) as exc:
            logger.warning("POST %s failed: %s", self.url, exc)
            return PushResult(success=False, error=str(exc))

        if not isinstance(data, dict) or not data.get("success"):
            error = data.get("error") if isinstance(data, dict) else "malformed response"
            return PushResult(success=False, error=str(error or "POST returned error"))
        return PushResult(success=True, last_updated=data.get("lastUpdated"))
