"""
Gather-list ledger: per-item totals aggregated across requirements.

Each entry records how many of an item are needed (``total``), how many the
player has (``have``) and the ordered links back to the requirement
instances that contributed to the total. Link order is the fill order used
when ``have`` is reconciled into the progress ledger (see sync_service).

Stored data from older releases lacks link sources, and some entries carry
a total with no links at all. ``migrate_checklist`` upgrades both shapes
when the store is opened.
"""

import json
import logging
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from catalog_service import RequirementIndex
from constants import MANUAL_SOURCE_LABEL, UNKNOWN_SOURCE_LABEL
from storage import StorageBackend


class ChecklistLink(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    key: Optional[str] = None
    need: int
    source: Optional[str] = None


class ChecklistEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item_id: str = Field(alias="itemId")
    name: str
    total: int = 0
    have: int = 0
    links: List[ChecklistLink] = Field(default_factory=list)

    def sources(self) -> List[str]:
        seen: List[str] = []
        for link in self.links:
            if link.source and link.source not in seen:
                seen.append(link.source)
        return seen


ChecklistMap = Dict[str, ChecklistEntry]


def _read_initial(storage: StorageBackend) -> ChecklistMap:
    saved = storage.read()
    if not saved:
        return {}
    try:
        raw = json.loads(saved)
    except json.JSONDecodeError as exc:
        logging.warning("Could not parse saved checklist, starting empty: %s", exc)
        return {}
    if not isinstance(raw, dict):
        logging.warning("Saved checklist is not an object, starting empty")
        return {}

    items: ChecklistMap = {}
    for item_id, payload in raw.items():
        try:
            entry = ChecklistEntry.model_validate(payload)
        except ValidationError as exc:
            logging.warning("Dropping unreadable checklist entry %r: %s", item_id, exc)
            continue
        items[str(item_id)] = entry
    return items


def _infer_source(link: ChecklistLink, item_id: str, index: RequirementIndex) -> str:
    if link.key and link.key in index.label_by_key:
        return index.label_by_key[link.key]
    labels = index.labels_for(item_id)
    return labels[0] if labels else UNKNOWN_SOURCE_LABEL


def _migrate_entry(entry: ChecklistEntry, index: RequirementIndex) -> Optional[ChecklistEntry]:
    """Return an upgraded copy of ``entry``, or None if it is already current."""
    if entry.total > 0 and not entry.links:
        labels = index.labels_for(entry.item_id) or [UNKNOWN_SOURCE_LABEL]
        links = [ChecklistLink(need=entry.total, source=label) for label in labels]
        return entry.model_copy(update={"links": links})

    if all(link.source for link in entry.links):
        return None
    links = [
        link if link.source else link.model_copy(update={"source": _infer_source(link, entry.item_id, index)})
        for link in entry.links
    ]
    return entry.model_copy(update={"links": links})


def migrate_checklist(items: ChecklistMap, index: RequirementIndex) -> Tuple[ChecklistMap, int]:
    """Upgrade legacy checklist shapes.

    Returns the upgraded map and the number of entries that changed. Running
    it on its own output changes nothing.
    """
    migrated: ChecklistMap = {}
    changed = 0
    for item_id, entry in items.items():
        upgraded = _migrate_entry(entry, index)
        if upgraded is None:
            migrated[item_id] = entry
        else:
            migrated[item_id] = upgraded
            changed += 1
    return migrated, changed


def dump_checklist(items: ChecklistMap) -> str:
    return json.dumps(
        {item_id: entry.model_dump(by_alias=True, exclude_none=True) for item_id, entry in items.items()}
    )


class ChecklistStore:
    def __init__(self, storage: StorageBackend, index: Optional[RequirementIndex] = None) -> None:
        self._storage = storage
        self._index = index or RequirementIndex()
        items, changed = migrate_checklist(_read_initial(storage), self._index)
        self._items = items
        if changed:
            logging.info("Migrated %d legacy checklist entries", changed)
            self._persist(items)

    @property
    def items(self) -> ChecklistMap:
        return dict(self._items)

    def get(self, item_id: str) -> Optional[ChecklistEntry]:
        return self._items.get(item_id)

    def has_link(self, item_id: str, key: str) -> bool:
        entry = self._items.get(item_id)
        return entry is not None and any(link.key == key for link in entry.links)

    def add(
        self,
        item_id: str,
        name: str,
        quantity: int,
        key: Optional[str] = None,
        source: Optional[str] = None,
    ) -> Optional[ChecklistEntry]:
        quantity = int(quantity)
        existing = self._items.get(item_id)
        if quantity <= 0:
            return existing

        links = list(existing.links) if existing is not None else []
        if key:
            link = ChecklistLink(key=key, need=quantity, source=source)
            if not source:
                link.source = _infer_source(link, item_id, self._index)
            links.append(link)
        else:
            links.append(ChecklistLink(need=quantity, source=source or MANUAL_SOURCE_LABEL))
        entry = ChecklistEntry(
            item_id=item_id,
            name=name,
            total=(existing.total if existing is not None else 0) + quantity,
            have=existing.have if existing is not None else 0,
            links=links,
        )
        self._persist({**self._items, item_id: entry})
        return entry

    def set_have(self, item_id: str, have: int) -> Optional[ChecklistEntry]:
        target = self._items.get(item_id)
        if target is None:
            return None
        clamped = max(0, min(int(have), target.total))
        entry = target.model_copy(update={"have": clamped})
        self._persist({**self._items, item_id: entry})
        return entry

    def increment_have(self, item_id: str, delta: int) -> Optional[ChecklistEntry]:
        target = self._items.get(item_id)
        if target is None:
            return None
        return self.set_have(item_id, target.have + int(delta))

    def remove(self, item_id: str) -> None:
        nxt = dict(self._items)
        nxt.pop(item_id, None)
        self._persist(nxt)

    def clear(self) -> None:
        self._persist({})

    def _persist(self, nxt: ChecklistMap) -> None:
        self._storage.write(dump_checklist(nxt))
        self._items = nxt
