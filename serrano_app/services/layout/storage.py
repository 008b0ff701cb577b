"""
Layout storage backends — where the serialized layout lives.

Single Responsibility: read/write one opaque string per key.  No JSON
parsing, no validation; that is the layout store's job.

Backends:
  MemoryLayoutStorage   — process-local dict (tests, ephemeral sessions).
  JsonFileLayoutStorage — one ``<key>.json`` file per key in a directory.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Dict, Optional, Protocol, Union


class LayoutStorage(Protocol):
    def read(self, key: str) -> Optional[str]:
        ...

    def write(self, key: str, raw: str) -> None:
        ...


class MemoryLayoutStorage:
    """Dict-backed storage."""

    def __init__(self) -> None:
        self._items: Dict[str, str] = {}

    def read(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def write(self, key: str, raw: str) -> None:
        self._items[key] = raw


class JsonFileLayoutStorage:
    """
    File-backed storage.  Writes go to a temp file first and are then
    renamed over the target, so a reader never sees a half-written file.
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.directory / f"{safe}.json"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, raw: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(raw, encoding="utf-8")
        os.replace(tmp, path)
