"""
Catalog & category API routes.

Handles:
  /api/health
  /api/catalog/items
  /api/catalog/stats
  /api/categories/{category}
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from catalog_service import build_catalog_stats
from constants import PROGRESS_CATEGORIES, PROGRESS_CATEGORY_BY_ID
from tracker_service import Tracker, get_tracker

router = APIRouter(tags=["catalog"])


@router.get("/api/health")
def api_health(tracker: Tracker = Depends(get_tracker)) -> Dict[str, Any]:
    return {
        "ok": True,
        "service": "raider-tracker",
        "items": len(tracker.catalog.items),
    }


@router.get("/api/catalog/items")
def api_catalog_items(tracker: Tracker = Depends(get_tracker)) -> Dict[str, Any]:
    return {
        "items": [item.model_dump(by_alias=True, exclude_none=True) for item in tracker.catalog.items],
    }


@router.get("/api/catalog/stats")
def api_catalog_stats(tracker: Tracker = Depends(get_tracker)) -> Dict[str, Any]:
    return {
        "stats": build_catalog_stats(tracker.catalog),
        "categories": [{"id": c["id"], "label": c["label"]} for c in PROGRESS_CATEGORIES],
    }


@router.get("/api/categories/{category}")
def api_category(category: str, tracker: Tracker = Depends(get_tracker)) -> Dict[str, Any]:
    meta = PROGRESS_CATEGORY_BY_ID.get(category)
    if meta is None:
        raise HTTPException(status_code=404, detail=f"Unknown category: {category}")
    return {
        "id": category,
        "label": meta["label"],
        "entries": tracker.category_view(category),
    }
