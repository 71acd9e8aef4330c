# io/segment_store.py
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from route_mesh.domain.hooks import NetworkHooks, NoopHooks


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any | None: ...
    def set(self, key: str, value: Any) -> None: ...
    def delete(self, key: str) -> None: ...


class MemoryStore:
    def __init__(self, initial: dict[str, Any] | None = None):
        self.data: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any | None:
        return self.data.get(key)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore:
    """One JSON object on disk; every write replaces the whole file."""

    def __init__(self, path: str | os.PathLike, hooks: NetworkHooks | None = None):
        self.path = Path(path)
        self.hooks = hooks or NoopHooks()

    def _read(self, key: str) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fp:
                data = json.load(fp)
        except ValueError:  # bad JSON or bad encoding; read as empty
            self.hooks.record_skipped(key=key, index=None, reason="corrupt_store")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                json.dump(data, fp)
            os.replace(tmp, self.path)
        except BaseException:
            os.unlink(tmp)
            raise

    def get(self, key: str) -> Any | None:
        return self._read(key).get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read(key)
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read(key)
        if data.pop(key, None) is not None:
            self._write(data)
