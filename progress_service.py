"""
Progress ledger: fulfillment counts per requirement instance.

Values are floored at zero. Upper bounds belong to the caller, since the
ledger does not know requirement quantities. The whole map is written to
storage after every mutation, and the in-memory map only changes once that
write has succeeded.
"""

import json
import logging
from typing import Dict, Mapping, Optional

from storage import StorageBackend


def _read_initial(storage: StorageBackend) -> Dict[str, int]:
    saved = storage.read()
    if not saved:
        return {}
    try:
        raw = json.loads(saved)
    except json.JSONDecodeError as exc:
        logging.warning("Could not parse saved progress, starting empty: %s", exc)
        return {}
    if not isinstance(raw, dict):
        logging.warning("Saved progress is not an object, starting empty")
        return {}

    progress: Dict[str, int] = {}
    for key, value in raw.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            logging.warning("Dropping saved progress %r with non-numeric value %r", key, value)
            continue
        progress[str(key)] = max(0, int(value))
    return progress


class ProgressStore:
    def __init__(self, storage: StorageBackend) -> None:
        self._storage = storage
        self._progress = _read_initial(storage)

    @property
    def progress(self) -> Dict[str, int]:
        return dict(self._progress)

    def get_value(self, key: str) -> int:
        return self._progress.get(key, 0)

    def set_value(self, key: str, value: int) -> int:
        clamped = max(0, int(value))
        self._persist({**self._progress, key: clamped})
        return clamped

    def set_values(self, values: Mapping[str, int]) -> None:
        """Write several keys with a single persist."""
        if not values:
            return
        nxt = dict(self._progress)
        for key, value in values.items():
            nxt[key] = max(0, int(value))
        self._persist(nxt)

    def increment(self, key: str, delta: int, max_value: Optional[int] = None) -> int:
        nxt = self.get_value(key) + int(delta)
        if max_value is not None:
            nxt = min(int(max_value), nxt)
        return self.set_value(key, nxt)

    def clear(self) -> None:
        self._persist({})

    def _persist(self, nxt: Dict[str, int]) -> None:
        self._storage.write(json.dumps(nxt))
        self._progress = nxt
