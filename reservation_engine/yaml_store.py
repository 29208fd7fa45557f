from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from threading import RLock
from typing import Any, Callable
import re

import yaml

from .errors import StoreFailure
from .logger import get_logger

logger = get_logger(__name__)

Record = dict[str, Any]
Predicate = Callable[[Record], bool]

_COLLECTION_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class RecordStore:
    """Persistence collaborator: records keyed by ``id`` inside named collections.

    Every method is individually atomic. Callers needing a larger atomic unit
    must bring their own locking.
    """

    def get(self, collection: str, record_id: str) -> Record | None:
        raise NotImplementedError

    def list(self, collection: str) -> list[Record]:
        raise NotImplementedError

    def list_where(self, collection: str, predicate: Predicate) -> list[Record]:
        return [row for row in self.list(collection) if predicate(row)]

    def put(self, collection: str, record: Record) -> Record:
        raise NotImplementedError

    def remove(self, collection: str, record_id: str) -> bool:
        raise NotImplementedError


class MemoryRecordStore(RecordStore):
    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Record]] = {}
        self._lock = RLock()

    def get(self, collection: str, record_id: str) -> Record | None:
        with self._lock:
            row = self._collections.get(collection, {}).get(record_id)
            return deepcopy(row) if row is not None else None

    def list(self, collection: str) -> list[Record]:
        with self._lock:
            return [deepcopy(row) for row in self._collections.get(collection, {}).values()]

    def put(self, collection: str, record: Record) -> Record:
        record_id = _require_id(record)
        with self._lock:
            self._collections.setdefault(collection, {})[record_id] = deepcopy(record)
        return record

    def remove(self, collection: str, record_id: str) -> bool:
        with self._lock:
            return self._collections.get(collection, {}).pop(record_id, None) is not None


class YamlRecordStore(RecordStore):
    """One YAML list file per collection, rewritten via temp file and rename."""

    def __init__(self, base_dir: str | Path = "data") -> None:
        self.base_dir = Path(base_dir)
        self._lock = RLock()
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise StoreFailure(f"Cannot create data directory: {self.base_dir}") from error

    def path_for(self, collection: str) -> Path:
        if not _COLLECTION_RE.match(collection):
            raise ValueError(f"invalid collection name: {collection!r}")
        return self.base_dir / f"{collection}.yaml"

    def get(self, collection: str, record_id: str) -> Record | None:
        with self._lock:
            for row in self._read_yaml_list(self.path_for(collection)):
                if str(row.get("id")) == record_id:
                    return row
        return None

    def list(self, collection: str) -> list[Record]:
        with self._lock:
            return self._read_yaml_list(self.path_for(collection))

    def put(self, collection: str, record: Record) -> Record:
        record_id = _require_id(record)
        path = self.path_for(collection)
        with self._lock:
            rows = self._read_yaml_list(path)
            for index, row in enumerate(rows):
                if str(row.get("id")) == record_id:
                    rows[index] = dict(record)
                    break
            else:
                rows.append(dict(record))
            self._write_yaml_list(path, rows)
        return record

    def remove(self, collection: str, record_id: str) -> bool:
        path = self.path_for(collection)
        with self._lock:
            rows = self._read_yaml_list(path)
            remaining = [row for row in rows if str(row.get("id")) != record_id]
            if len(remaining) == len(rows):
                return False
            self._write_yaml_list(path, remaining)
        return True

    def append(self, collection: str, row: Record) -> None:
        """Append a row without id semantics (used for event logs)."""
        path = self.path_for(collection)
        with self._lock:
            rows = self._read_yaml_list(path)
            rows.append(dict(row))
            self._write_yaml_list(path, rows)

    def _read_yaml_list(self, path: Path) -> list[Record]:
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
            raise StoreFailure(f"Failed to read YAML file: {path}") from error

        if payload is None:
            return []
        if not isinstance(payload, list):
            raise StoreFailure(f"Top-level YAML is not a list: {path}")

        sanitized: list[Record] = []
        for index, row in enumerate(payload):
            if isinstance(row, dict):
                sanitized.append(row)
            else:
                logger.warning("Skipping YAML row %s in %s: row is not a mapping", index, path.name)
        return sanitized

    def _write_yaml_list(self, path: Path, rows: list[Record]) -> None:
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            temp_path.write_text(yaml.safe_dump(rows, allow_unicode=True, sort_keys=False), encoding="utf-8")
            temp_path.replace(path)
        except OSError as error:
            raise StoreFailure(f"Failed to write YAML file: {path}") from error
        finally:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)


def _require_id(record: Record) -> str:
    record_id = record.get("id")
    if record_id is None or not str(record_id).strip():
        raise ValueError("record must carry a non-empty id")
    return str(record_id)
