"""
Canonical shared constants for the Raider Tracker.

catalog_service.py, requirements_service.py and checklist_service.py all
read from here; this module is the single source of truth.
"""

from typing import Dict, List

# ---------------------------------------------------------------------------
# Progress categories
# ---------------------------------------------------------------------------

PROGRESS_CATEGORIES: List[Dict[str, str]] = [
    {
        "id": "quest",
        "label": "Quests",
        "fixture": "quests.json",
    },
    {
        "id": "project",
        "label": "Projects",
        "fixture": "projects.json",
    },
    {
        "id": "workbench",
        "label": "Workbench",
        "fixture": "workbench.json",
    },
]

PROGRESS_CATEGORY_BY_ID: Dict[str, Dict[str, str]] = {c["id"]: c for c in PROGRESS_CATEGORIES}

ITEMS_FIXTURE = "items.json"

# ---------------------------------------------------------------------------
# Persisted state
# ---------------------------------------------------------------------------

PROGRESS_STORAGE_KEY = "raider-tracker-progress-v1"
CHECKLIST_STORAGE_KEY = "raider-tracker-checklist-v1"

PROGRESS_KEY_SEPARATOR = "|"

# ---------------------------------------------------------------------------
# Fallback labels
# ---------------------------------------------------------------------------

UNKNOWN_SOURCE_LABEL = "Unknown source"
MANUAL_SOURCE_LABEL = "Added manually"
QUEST_OBJECTIVE_FALLBACK = "Objective"
QUEST_STAGE_LABEL = "Quest"
