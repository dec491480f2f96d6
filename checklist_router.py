"""
Gather list API routes.

Handles:
  /api/checklist - all entries with sources and completion
  /api/checklist/add - add a quantity (optionally linked to a requirement)
  /api/checklist/add-requirement - add the unmet part of one catalog requirement
  /api/checklist/set-have - set the owned count, reconciled into progress
  /api/checklist/increment - step the owned count, reconciled into progress
  /api/checklist/remove - drop one entry (progress is left as-is)
  /api/checklist/clear - drop every entry

Unknown item ids are ignored; the response then carries ``entry: null``.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from checklist_service import ChecklistEntry
from tracker_service import Tracker, get_tracker

router = APIRouter(tags=["checklist"])


# ── Request Models ─────────────────────────────────────────────────────────────


class AddItemRequest(BaseModel):
    item_id: str
    name: str
    quantity: int
    key: Optional[str] = None
    source: Optional[str] = None


class AddRequirementRequest(BaseModel):
    category: str
    entity_id: str
    stage_id: str
    item_id: str


class SetHaveRequest(BaseModel):
    item_id: str
    have: int


class IncrementHaveRequest(BaseModel):
    item_id: str
    delta: int = 1


class ItemRequest(BaseModel):
    item_id: str


def _entry_payload(entry: Optional[ChecklistEntry]) -> Dict[str, Any]:
    return {"entry": entry.model_dump(exclude_none=True) if entry is not None else None}


# ── Routes ─────────────────────────────────────────────────────────────────────


@router.get("/api/checklist")
def api_checklist(tracker: Tracker = Depends(get_tracker)) -> Dict[str, Any]:
    return {"items": tracker.checklist_view()}


@router.post("/api/checklist/add")
def api_checklist_add(req: AddItemRequest, tracker: Tracker = Depends(get_tracker)) -> Dict[str, Any]:
    return _entry_payload(tracker.add_to_checklist(req.item_id, req.name, req.quantity, req.key, req.source))


@router.post("/api/checklist/add-requirement")
def api_checklist_add_requirement(req: AddRequirementRequest, tracker: Tracker = Depends(get_tracker)) -> Dict[str, Any]:
    return _entry_payload(tracker.add_requirement(req.category, req.entity_id, req.stage_id, req.item_id))


@router.post("/api/checklist/set-have")
def api_checklist_set_have(req: SetHaveRequest, tracker: Tracker = Depends(get_tracker)) -> Dict[str, Any]:
    return _entry_payload(tracker.set_have(req.item_id, req.have))


@router.post("/api/checklist/increment")
def api_checklist_increment(req: IncrementHaveRequest, tracker: Tracker = Depends(get_tracker)) -> Dict[str, Any]:
    return _entry_payload(tracker.increment_have(req.item_id, req.delta))


@router.post("/api/checklist/remove")
def api_checklist_remove(req: ItemRequest, tracker: Tracker = Depends(get_tracker)) -> Dict[str, Any]:
    tracker.remove_from_checklist(req.item_id)
    return {"ok": True}


@router.post("/api/checklist/clear")
def api_checklist_clear(tracker: Tracker = Depends(get_tracker)) -> Dict[str, Any]:
    tracker.clear_checklist()
    return {"ok": True}
