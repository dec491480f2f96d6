"""
Tracker facade: catalog, progress ledger and gather list behind one lock.

HTTP routes go through here so that every checklist ``have`` mutation is
followed by a reconciliation into the progress ledger, and so that the
threadpool FastAPI runs sync endpoints in never interleaves two edits.
"""

import sqlite3
import threading
from typing import Any, Dict, List, Optional

from fastapi import Request

from catalog_models import Requirement
from catalog_service import Catalog, build_requirement_index, find_requirement, source_label
from checklist_service import ChecklistEntry, ChecklistStore
from constants import CHECKLIST_STORAGE_KEY, PROGRESS_STORAGE_KEY
from progress_service import ProgressStore
from requirements_service import make_progress_key, normalize, stage_summary
from storage import SqliteBlobStorage
from sync_service import sync_checklist_to_progress


class Tracker:
    def __init__(self, catalog: Catalog, progress: ProgressStore, checklist: ChecklistStore) -> None:
        self.catalog = catalog
        self.progress = progress
        self.checklist = checklist
        self._lock = threading.Lock()

    @classmethod
    def open(cls, conn: sqlite3.Connection, catalog: Catalog) -> "Tracker":
        return cls(
            catalog,
            ProgressStore(SqliteBlobStorage(conn, PROGRESS_STORAGE_KEY)),
            ChecklistStore(
                SqliteBlobStorage(conn, CHECKLIST_STORAGE_KEY),
                build_requirement_index(catalog),
            ),
        )

    # ── Progress ledger ─────────────────────────────────────────────────────

    def progress_snapshot(self) -> Dict[str, int]:
        with self._lock:
            return self.progress.progress

    def set_progress(self, key: str, value: int, max_value: Optional[int] = None) -> int:
        if max_value is not None:
            value = min(value, max_value)
        with self._lock:
            return self.progress.set_value(key, value)

    def increment_progress(self, key: str, delta: int, max_value: Optional[int] = None) -> int:
        with self._lock:
            return self.progress.increment(key, delta, max_value)

    def clear_progress(self) -> None:
        with self._lock:
            self.progress.clear()

    # ── Gather list ─────────────────────────────────────────────────────────

    def add_to_checklist(
        self,
        item_id: str,
        name: str,
        quantity: int,
        key: Optional[str] = None,
        source: Optional[str] = None,
    ) -> Optional[ChecklistEntry]:
        with self._lock:
            return self.checklist.add(item_id, name, quantity, key, source)

    def add_requirement(
        self,
        category: str,
        entity_id: str,
        stage_id: str,
        item_id: str,
    ) -> Optional[ChecklistEntry]:
        """Queue the unmet part of one requirement on the gather list.

        Nothing is added when the requirement is unknown, already complete,
        or already linked from this item's entry.
        """
        found = find_requirement(self.catalog, category, entity_id, stage_id, item_id)
        with self._lock:
            if found is None:
                return self.checklist.get(item_id)
            entity, _, req = found
            key = make_progress_key(category, entity_id, stage_id, item_id)
            remaining = max(0, req.quantity - self.progress.get_value(key))
            if remaining <= 0 or self.checklist.has_link(item_id, key):
                return self.checklist.get(item_id)
            return self.checklist.add(
                item_id,
                self.catalog.item_name(item_id),
                remaining,
                key,
                source_label(entity),
            )

    def set_have(self, item_id: str, have: int) -> Optional[ChecklistEntry]:
        with self._lock:
            entry = self.checklist.set_have(item_id, have)
            if entry is not None:
                sync_checklist_to_progress(self.checklist, self.progress, item_id, entry.have)
            return entry

    def increment_have(self, item_id: str, delta: int) -> Optional[ChecklistEntry]:
        with self._lock:
            entry = self.checklist.increment_have(item_id, delta)
            if entry is not None:
                sync_checklist_to_progress(self.checklist, self.progress, item_id, entry.have)
            return entry

    def remove_from_checklist(self, item_id: str) -> None:
        with self._lock:
            self.checklist.remove(item_id)

    def clear_checklist(self) -> None:
        with self._lock:
            self.checklist.clear()

    # ── Read model ──────────────────────────────────────────────────────────

    def _requirement_row(self, category: str, entity_id: str, stage_id: str, req: Requirement) -> Dict[str, Any]:
        key = make_progress_key(category, entity_id, stage_id, req.item_id)
        item = self.catalog.item_by_id.get(req.item_id)
        current = self.progress.get_value(key)
        return {
            "key": key,
            "item_id": req.item_id,
            "name": item.name if item is not None else req.item_id,
            "description": item.description if item is not None else None,
            "notes": req.notes,
            "quantity": req.quantity,
            "current": current,
            "remaining": max(0, req.quantity - current),
            "done": current >= req.quantity,
            "in_checklist": self.checklist.has_link(req.item_id, key),
        }

    def category_view(self, category: str) -> List[Dict[str, Any]]:
        entries = []
        with self._lock:
            for entity in self.catalog.entities(category):
                stages = []
                for stage in normalize(entity):
                    stages.append(
                        {
                            "id": stage.id,
                            "name": stage.name,
                            "reward": stage.reward,
                            "stage_label": stage.stage_label,
                            "summary": stage_summary(category, entity.id, stage, self.progress.get_value),
                            "requirements": [
                                self._requirement_row(category, entity.id, stage.id, req)
                                for req in stage.requirements
                            ],
                        }
                    )
                entries.append(
                    {
                        "id": entity.id,
                        "name": entity.name,
                        "description": entity.description,
                        "image": entity.image,
                        "source_url": entity.source_url,
                        "source_label": source_label(entity),
                        "stages": stages,
                    }
                )
        return entries

    def checklist_view(self) -> List[Dict[str, Any]]:
        with self._lock:
            entries = list(self.checklist.items.values())
        view = []
        for entry in entries:
            payload = entry.model_dump(exclude_none=True)
            payload["sources"] = entry.sources()
            payload["percent"] = min(100, round(entry.have / entry.total * 100)) if entry.total > 0 else 0
            view.append(payload)
        return view


def get_tracker(request: Request) -> Tracker:
    """FastAPI dependency returning the tracker built at startup."""
    return request.app.state.tracker
