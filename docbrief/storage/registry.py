# docbrief/storage/registry.py

import copy
import json
import logging
import os
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional


logger = logging.getLogger(__name__)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class JsonRegistry:
    """
    Keyed records persisted to a single JSON file.

    Every mutation rewrites the file while holding the lock, so the file
    always reflects the in-memory state. Records are plain dicts; callers
    own their shape.
    """

    def __init__(self, path: str, name: str = "registry"):

        self._path = path
        self._name = name
        self._records: Dict[str, dict] = {}
        self._lock = threading.RLock()

    @property
    def path(self) -> str:
        return self._path

    # ============================================================
    # PERSISTENCE
    # ============================================================

    def load(self):

        with self._lock:

            self._records.clear()

            if not os.path.exists(self._path):
                logger.info(
                    "Registry file not found. Starting fresh.",
                    extra={"registry": self._name, "path": self._path},
                )
                return

            try:

                with open(self._path, "r", encoding="utf-8") as f:
                    data = json.load(f)

                if not isinstance(data, dict):
                    raise ValueError("registry root must be an object")

                self._records.update(data)

                logger.info(
                    "Registry loaded",
                    extra={"registry": self._name, "records": len(self._records)},
                )

            except (OSError, ValueError) as e:

                logger.error(
                    "Registry load failed",
                    extra={"registry": self._name, "error": str(e)},
                )

    def _save(self):

        directory = os.path.dirname(self._path)

        if directory:
            os.makedirs(directory, exist_ok=True)

        tmp_path = f"{self._path}.tmp"

        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._records, f, indent=2)

        os.replace(tmp_path, self._path)

    # ============================================================
    # ACCESS
    # ============================================================

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def get(self, key: str) -> Optional[dict]:

        with self._lock:

            record = self._records.get(key)

            return copy.deepcopy(record) if record is not None else None

    def put(self, key: str, record: dict) -> dict:

        with self._lock:

            self._records[key] = copy.deepcopy(record)
            self._save()

        return copy.deepcopy(record)

    def update(self, key: str, **changes) -> dict:

        with self._lock:

            if key not in self._records:
                raise KeyError(key)

            self._records[key].update(copy.deepcopy(changes))
            self._save()

            return copy.deepcopy(self._records[key])

    def delete(self, key: str) -> bool:

        with self._lock:

            if key not in self._records:
                return False

            del self._records[key]
            self._save()

        return True

    def values(
        self,
        sort_key: Optional[Callable[[dict], object]] = None,
        reverse: bool = False,
    ) -> List[dict]:

        with self._lock:
            records = copy.deepcopy(list(self._records.values()))

        if sort_key is not None:
            records.sort(key=sort_key, reverse=reverse)

        return records
