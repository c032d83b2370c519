"""Collection store backends: in-memory and JSON files with advisory locking.

The rest of the package only talks to :class:`Store`, so swapping in a hosted
database means implementing ``_read``/``_write``/``_locked`` for it.
"""
from __future__ import annotations

import contextlib
import copy
import fcntl
import json
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator

from gigscout.errors import StoreError
from gigscout.log import get_logger

log = get_logger(__name__)

LISTINGS = "listings"
USER_PREFERENCES = "user_preferences"
EMAIL_LOGS = "email_logs"
SCRAPE_RUNS = "scrape_runs"


def _matches(row: dict, equals: dict[str, Any]) -> bool:
    return all(row.get(k) == v for k, v in equals.items())


class Store(ABC):
    """Named collections of dict rows."""

    @abstractmethod
    def _read(self, collection: str) -> list[dict]:
        pass

    @abstractmethod
    def _write(self, collection: str, rows: list[dict]) -> None:
        pass

    @abstractmethod
    def _locked(self, collection: str) -> contextlib.AbstractContextManager:
        pass

    def select(self, collection: str, **equals: Any) -> list[dict]:
        with self._locked(collection):
            rows = self._read(collection)
        return [copy.deepcopy(r) for r in rows if _matches(r, equals)]

    def select_in(self, collection: str, field: str, values: Iterable[Any]) -> list[dict]:
        wanted = set(values)
        if not wanted:
            return []
        with self._locked(collection):
            rows = self._read(collection)
        return [copy.deepcopy(r) for r in rows if r.get(field) in wanted]

    def insert(self, collection: str, rows: Iterable[dict]) -> list[dict]:
        now = datetime.now(timezone.utc).isoformat()
        new_rows: list[dict] = []
        for row in rows:
            if not isinstance(row, dict):
                raise StoreError(f"{collection}: rows must be dicts, got {type(row).__name__}")
            r = copy.deepcopy(row)
            r.setdefault("id", uuid.uuid4().hex)
            if r.get("created_at") is None:
                r["created_at"] = now
            new_rows.append(r)
        if not new_rows:
            return []
        with self._locked(collection):
            existing = self._read(collection)
            self._write(collection, existing + new_rows)
        log.debug("Inserted %d row(s) into %s", len(new_rows), collection)
        return [copy.deepcopy(r) for r in new_rows]

    def upsert(self, collection: str, row: dict, key: str) -> dict:
        if key not in row:
            raise StoreError(f"{collection}: upsert row is missing key {key!r}")
        with self._locked(collection):
            rows = self._read(collection)
            for i, existing in enumerate(rows):
                if existing.get(key) == row[key]:
                    merged = {**existing, **copy.deepcopy(row)}
                    rows[i] = merged
                    break
            else:
                merged = copy.deepcopy(row)
                merged.setdefault("id", uuid.uuid4().hex)
                merged.setdefault("created_at", datetime.now(timezone.utc).isoformat())
                rows.append(merged)
            self._write(collection, rows)
        return copy.deepcopy(merged)

    def delete(self, collection: str, key: str, value: Any) -> int:
        with self._locked(collection):
            rows = self._read(collection)
            kept = [r for r in rows if r.get(key) != value]
            removed = len(rows) - len(kept)
            if removed:
                self._write(collection, kept)
        return removed


class MemoryStore(Store):
    """Process-local store; the default backend and the one tests use."""

    def __init__(self) -> None:
        self._collections: dict[str, list[dict]] = {}
        self._lock = threading.RLock()

    def _read(self, collection: str) -> list[dict]:
        return list(self._collections.get(collection, []))

    def _write(self, collection: str, rows: list[dict]) -> None:
        self._collections[collection] = rows

    def _locked(self, collection: str) -> contextlib.AbstractContextManager:
        return self._lock


class JsonFileStore(Store):
    """One ``<collection>.json`` file per collection under *data_dir*."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._thread_lock = threading.RLock()

    def _path(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    @contextlib.contextmanager
    def _locked(self, collection: str) -> Iterator[None]:
        lock_path = self.data_dir / f".{collection}.lock"
        with self._thread_lock:
            try:
                f = open(lock_path, "a+")
            except OSError as exc:
                raise StoreError(f"cannot open lock for {collection}: {exc}") from exc
            with f:
                try:
                    fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                except OSError:
                    pass
                try:
                    yield
                finally:
                    try:
                        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                    except OSError:
                        pass

    def _read(self, collection: str) -> list[dict]:
        path = self._path(collection)
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise StoreError(f"cannot read {path.name}: {exc}") from exc
        if not isinstance(data, list):
            raise StoreError(f"{path.name} does not hold a list of rows")
        return data

    def _write(self, collection: str, rows: list[dict]) -> None:
        path = self._path(collection)
        tmp = path.with_suffix(".json.tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(rows, f, indent=1, default=str)
            tmp.replace(path)
        except (OSError, TypeError) as exc:
            raise StoreError(f"cannot write {path.name}: {exc}") from exc


def build_store(backend: str, data_dir: Path) -> Store:
    backend = (backend or "memory").lower()
    if backend == "json":
        log.info("Using JSON file store at %s", data_dir)
        return JsonFileStore(data_dir)
    if backend != "memory":
        log.warning("Unknown store backend %r, falling back to memory", backend)
    return MemoryStore()
