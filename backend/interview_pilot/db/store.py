from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Iterable

logger = logging.getLogger("interview_pilot.db.store")

MEMORY_URL = "memory://"


class DocumentStore:
    """
    Named collections of JSON documents keyed by ``id``.

    Reads hand out deep copies so callers never mutate stored state without a
    ``put``. A file-backed store rewrites its file atomically after every write.
    """

    def __init__(self, path: Path | None = None):
        self._lock = Lock()
        self._path = path
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._closed = False
        self._load()

    @classmethod
    def from_url(cls, url: str) -> "DocumentStore":
        raw = str(url or "").strip()
        if not raw or raw == MEMORY_URL:
            return cls(path=None)
        if raw.startswith("file://"):
            raw = raw[len("file://"):]
        return cls(path=Path(raw).expanduser())

    @property
    def persistent(self) -> bool:
        return self._path is not None

    def _load(self) -> None:
        if self._path is None or not self._path.exists():
            return
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("document store unreadable, starting empty | path=%s err=%s", self._path, exc)
            return
        if not isinstance(payload, dict):
            return
        for name, docs in payload.items():
            if not isinstance(docs, dict):
                continue
            self._collections[str(name)] = {
                str(doc_id): doc
                for doc_id, doc in docs.items()
                if isinstance(doc, dict)
            }

    def _persist(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._path.with_suffix(".tmp")
        temp_path.write_text(json.dumps(self._collections, ensure_ascii=False), encoding="utf-8")
        temp_path.replace(self._path)

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        if self._closed:
            raise RuntimeError("document store is closed")
        return self._collections.setdefault(name, {})

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        with self._lock:
            doc = self._collection(collection).get(str(doc_id or ""))
            return copy.deepcopy(doc) if doc is not None else None

    def put(self, collection: str, doc: dict[str, Any]) -> dict[str, Any]:
        doc_id = str(doc.get("id") or "").strip()
        if not doc_id:
            raise ValueError("document requires an id")
        with self._lock:
            self._collection(collection)[doc_id] = copy.deepcopy(doc)
            self._persist()
        return doc

    def find(
        self,
        collection: str,
        predicate: Callable[[dict[str, Any]], bool] | None = None,
    ) -> list[dict[str, Any]]:
        with self._lock:
            docs: Iterable[dict[str, Any]] = self._collection(collection).values()
            return [copy.deepcopy(doc) for doc in docs if predicate is None or predicate(doc)]

    def find_one(
        self,
        collection: str,
        predicate: Callable[[dict[str, Any]], bool],
    ) -> dict[str, Any] | None:
        with self._lock:
            for doc in self._collection(collection).values():
                if predicate(doc):
                    return copy.deepcopy(doc)
        return None

    def update_many(
        self,
        collection: str,
        predicate: Callable[[dict[str, Any]], bool],
        changes: dict[str, Any],
    ) -> int:
        updated = 0
        with self._lock:
            for doc in self._collection(collection).values():
                if not predicate(doc):
                    continue
                doc.update(copy.deepcopy(changes))
                updated += 1
            if updated:
                self._persist()
        return updated

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._persist()
            self._closed = True
