"""JSON-file key/value store used when the storefront API is unreachable.

Each key maps to a JSON array persisted as `<key>.json` under one directory.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class LocalStore:
    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> List[Dict[str, Any]]:
        """Return the array stored under `key`; missing or unreadable data reads as empty."""
        path = self._path(key)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error("local_store_read_failed key=%s error=%s", key, e)
            return []
        if not isinstance(data, list):
            logger.warning("local_store_not_a_list key=%s", key)
            return []
        return data

    def write(self, key: str, records: List[Dict[str, Any]]) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp_path, path)


__all__ = ["LocalStore"]
