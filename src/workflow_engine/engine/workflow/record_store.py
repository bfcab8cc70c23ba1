"""Side-effect targets for task, notification and record-update actions.

Resources are addressed by type (`reminders`, `notifications`, `work_orders`, ...)
and id. The JSON adapter keeps one list file per resource type.
"""

from __future__ import annotations

import json
import re
import threading
import uuid
from collections import defaultdict
from pathlib import Path
from typing import Any, Protocol

_RESOURCE_TYPE = re.compile(r"^[a-z][a-z0-9_]*$")


class RecordStore(Protocol):
    def insert(self, resource_type: str, data: dict[str, Any]) -> str: ...

    def update_fields(self, resource_type: str, record_id: str, fields: dict[str, Any]) -> None: ...

    def get(self, resource_type: str, record_id: str) -> dict[str, Any] | None: ...


def _check_resource_type(resource_type: str) -> str:
    if not _RESOURCE_TYPE.match(resource_type):
        raise ValueError(f"Invalid resource type: {resource_type!r}")
    return resource_type


class InMemoryRecordStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.records: dict[str, list[dict[str, Any]]] = defaultdict(list)

    def insert(self, resource_type: str, data: dict[str, Any]) -> str:
        _check_resource_type(resource_type)
        with self._lock:
            record_id = str(data.get("id") or uuid.uuid4().hex)
            self.records[resource_type].append({**data, "id": record_id})
            return record_id

    def update_fields(self, resource_type: str, record_id: str, fields: dict[str, Any]) -> None:
        _check_resource_type(resource_type)
        with self._lock:
            for record in self.records[resource_type]:
                if str(record.get("id")) == record_id:
                    record.update(fields)
                    return
            raise KeyError(f"{resource_type}/{record_id}")

    def get(self, resource_type: str, record_id: str) -> dict[str, Any] | None:
        _check_resource_type(resource_type)
        with self._lock:
            for record in self.records[resource_type]:
                if str(record.get("id")) == record_id:
                    return dict(record)
            return None


class JsonRecordStore:
    def __init__(self, root: Path) -> None:
        self._root = root
        self._lock = threading.Lock()

    def _path(self, resource_type: str) -> Path:
        return self._root / f"{_check_resource_type(resource_type)}.json"

    def _load_unlocked(self, resource_type: str) -> list[dict[str, Any]]:
        path = self._path(resource_type)
        if not path.exists():
            return []
        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, list):
            raise ValueError(f"Record file has unexpected shape: {path}")
        return [item for item in raw if isinstance(item, dict)]

    def _save_unlocked(self, resource_type: str, records: list[dict[str, Any]]) -> None:
        path = self._path(resource_type)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(records, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")

    def insert(self, resource_type: str, data: dict[str, Any]) -> str:
        with self._lock:
            records = self._load_unlocked(resource_type)
            record_id = str(data.get("id") or uuid.uuid4().hex)
            records.append({**data, "id": record_id})
            self._save_unlocked(resource_type, records)
            return record_id

    def update_fields(self, resource_type: str, record_id: str, fields: dict[str, Any]) -> None:
        with self._lock:
            records = self._load_unlocked(resource_type)
            for record in records:
                if str(record.get("id")) == record_id:
                    record.update(fields)
                    self._save_unlocked(resource_type, records)
                    return
            raise KeyError(f"{resource_type}/{record_id}")

    def get(self, resource_type: str, record_id: str) -> dict[str, Any] | None:
        with self._lock:
            for record in self._load_unlocked(resource_type):
                if str(record.get("id")) == record_id:
                    return record
            return None
