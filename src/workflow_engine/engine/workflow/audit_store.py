"""Execution audit store.

One record per invocation. The coordinator creates it in `pending` status and
updates it in place; records are never deleted here (retention is external).

The JSON adapter follows the same load/modify/save cycle under a lock as the
other local stores. An unreadable file raises `ExecutionStoreError` and is left
untouched.
"""

from __future__ import annotations

import json
import threading
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, Field, ValidationError

from .errors import ExecutionStoreError
from .state_machine import ExecutionStatus


def utc_iso_now() -> str:
    return datetime.now(tz=UTC).isoformat()


class ExecutionRecord(BaseModel):
    id: str = ""
    trigger_id: str
    status: ExecutionStatus = ExecutionStatus.PENDING
    execution_log: dict[str, Any] = Field(default_factory=dict)
    triggered_at: str = Field(default_factory=utc_iso_now)
    completed_at: str | None = None
    error_message: str | None = None


class ExecutionStore(Protocol):
    def create_execution(self, record: ExecutionRecord) -> str: ...

    def update_execution(self, execution_id: str, **fields: object) -> ExecutionRecord: ...

    def get_execution(self, execution_id: str) -> ExecutionRecord | None: ...

    def list_executions(self, *, trigger_id: str | None = None) -> list[ExecutionRecord]: ...


def _new_execution_id() -> str:
    return uuid.uuid4().hex


@dataclass
class InMemoryExecutionStore:
    records: dict[str, ExecutionRecord] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def create_execution(self, record: ExecutionRecord) -> str:
        with self._lock:
            execution_id = record.id or _new_execution_id()
            self.records[execution_id] = record.model_copy(update={"id": execution_id}, deep=True)
            return execution_id

    def update_execution(self, execution_id: str, **fields: object) -> ExecutionRecord:
        with self._lock:
            current = self.records.get(execution_id)
            if current is None:
                raise KeyError(execution_id)
            merged = current.model_copy(update=fields, deep=True)
            self.records[execution_id] = merged
            return merged

    def get_execution(self, execution_id: str) -> ExecutionRecord | None:
        with self._lock:
            record = self.records.get(execution_id)
            return record.model_copy(deep=True) if record is not None else None

    def list_executions(self, *, trigger_id: str | None = None) -> list[ExecutionRecord]:
        with self._lock:
            return [
                r.model_copy(deep=True)
                for r in self.records.values()
                if trigger_id is None or r.trigger_id == trigger_id
            ]


@dataclass
class JsonExecutionStore:
    path: Path

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def _load_unlocked(self) -> list[ExecutionRecord]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ExecutionStoreError(f"Cannot read execution log {self.path}: {e}") from e
        if not isinstance(raw, list):
            raise ExecutionStoreError(f"Execution log must be a JSON list: {self.path}")
        try:
            return [ExecutionRecord.model_validate(item) for item in raw]
        except ValidationError as e:
            raise ExecutionStoreError(f"Invalid execution record in {self.path}: {e}") from e

    def _save_unlocked(self, records: list[ExecutionRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [r.model_dump(mode="json") for r in records]
        self.path.write_text(
            json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )

    def create_execution(self, record: ExecutionRecord) -> str:
        with self._lock:
            records = self._load_unlocked()
            execution_id = record.id or _new_execution_id()
            records.append(record.model_copy(update={"id": execution_id}))
            self._save_unlocked(records)
            return execution_id

    def update_execution(self, execution_id: str, **fields: object) -> ExecutionRecord:
        with self._lock:
            records = self._load_unlocked()
            for idx, record in enumerate(records):
                if record.id != execution_id:
                    continue
                # Round-trip through validation so enum/str values persist consistently.
                merged = ExecutionRecord.model_validate(
                    {**record.model_dump(mode="json"), **_jsonable(fields)}
                )
                records[idx] = merged
                self._save_unlocked(records)
                return merged
            raise KeyError(execution_id)

    def get_execution(self, execution_id: str) -> ExecutionRecord | None:
        with self._lock:
            for record in self._load_unlocked():
                if record.id == execution_id:
                    return record
            return None

    def list_executions(self, *, trigger_id: str | None = None) -> list[ExecutionRecord]:
        with self._lock:
            return [
                r
                for r in self._load_unlocked()
                if trigger_id is None or r.trigger_id == trigger_id
            ]


def _jsonable(fields: dict[str, object]) -> dict[str, object]:
    return {
        key: value.value if isinstance(value, ExecutionStatus) else value
        for key, value in fields.items()
    }
