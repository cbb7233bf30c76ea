# PURPOSE: tiny persistent key-value store backed by one JSON file.
# Values are any JSON-serializable object; the whole mapping is rewritten on
# every change.

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from .errors import StorageError

logger = logging.getLogger(__name__)


class JsonFileKeyValueStore:
    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> Dict[str, Any]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StorageError(f"could not read {self._path}") from exc
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise StorageError(f"could not parse {self._path}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"{self._path} does not hold a key-value mapping")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp, self._path)
        except OSError as exc:
            logger.error("key-value write failed path=%s error=%s", self._path, exc)
            raise StorageError(f"could not write {self._path}") from exc

    def get_item(self, key: str, default: Optional[Any] = None) -> Any:
        return self._read().get(key, default)

    def set_item(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        self.multi_remove([key])

    def multi_remove(self, keys: Iterable[str]) -> None:
        data = self._read()
        removed = False
        for key in keys:
            if key in data:
                del data[key]
                removed = True
        if removed:
            self._write(data)
