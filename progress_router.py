"""
Progress API routes.

Handles:
  /api/progress - full key -> count map
  /api/progress/set - set one requirement's count (optionally capped)
  /api/progress/increment - step one requirement's count
  /api/progress/clear - wipe all progress
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from tracker_service import Tracker, get_tracker

router = APIRouter(tags=["progress"])


# ── Request Models ─────────────────────────────────────────────────────────────


class SetProgressRequest(BaseModel):
    key: str
    value: int
    max: Optional[int] = None


class IncrementProgressRequest(BaseModel):
    key: str
    delta: int = 1
    max: Optional[int] = None


# ── Routes ─────────────────────────────────────────────────────────────────────


@router.get("/api/progress")
def api_progress(tracker: Tracker = Depends(get_tracker)) -> Dict[str, Any]:
    return {"progress": tracker.progress_snapshot()}


@router.post("/api/progress/set")
def api_progress_set(req: SetProgressRequest, tracker: Tracker = Depends(get_tracker)) -> Dict[str, Any]:
    value = tracker.set_progress(req.key, req.value, req.max)
    return {"key": req.key, "value": value}


@router.post("/api/progress/increment")
def api_progress_increment(req: IncrementProgressRequest, tracker: Tracker = Depends(get_tracker)) -> Dict[str, Any]:
    value = tracker.increment_progress(req.key, req.delta, req.max)
    return {"key": req.key, "value": value}


@router.post("/api/progress/clear")
def api_progress_clear(tracker: Tracker = Depends(get_tracker)) -> Dict[str, Any]:
    tracker.clear_progress()
    return {"ok": True}
